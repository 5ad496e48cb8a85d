import numpy as np
import pandas as pd
import pytest
from scipy import sparse

from review_vocab.features.term_counts import TermCounts


def make_counts(doc_ids, rows):
    """TermCounts from one {term: count} dict per document."""
    terms = sorted({t for row in rows for t in row})
    index = {t: j for j, t in enumerate(terms)}
    dense = np.zeros((len(rows), len(terms)), dtype=np.int64)
    for i, row in enumerate(rows):
        for term, n in row.items():
            dense[i, index[term]] = n
    return TermCounts(sparse.csr_matrix(dense), np.asarray(doc_ids), np.array(terms, dtype=object))


@pytest.fixture
def counts_factory():
    return make_counts


@pytest.fixture
def class_a_counts():
    """Three liked reviews: {good:2, nice:1}, {good:1}, {}."""
    return make_counts([1, 3, 5], [{"good": 2, "nice": 1}, {"good": 1}, {}])


@pytest.fixture
def class_b_counts():
    """Two not-liked reviews: {bad:1}, {bad:1, sad:1}."""
    return make_counts([2, 4], [{"bad": 1}, {"bad": 1, "sad": 1}])


@pytest.fixture
def train_reviews():
    """Eight liked and four not-liked reviews with a couple of aggregates."""
    liked = [
        "great sound and great battery",
        "great value, love it",
        "love the sound quality",
        "battery lasts forever, great",
        "great headphones",
        "love love love",
        "great battery great sound",
        "solid build, great price",
    ]
    not_liked = [
        "broke after a week, refund",
        "terrible battery, broke quickly",
        "refund requested, terrible",
        "stopped working, broke",
    ]
    texts  = liked + not_liked
    labels = [1] * len(liked) + [0] * len(not_liked)
    return pd.DataFrame({
        "review_id":      [f"r{i:02d}" for i in range(len(texts))],
        "review_text":    texts,
        "liked":          labels,
        "rating_number":  [120, 40, 300, 15, 80, 5, 60, 22, 9, 14, 3, 30],
        "average_rating": [4.5, 4.2, 4.8, 4.1, 4.4, 4.9, 4.6, 4.0, 2.1, 2.5, 1.8, 2.9],
    })


@pytest.fixture
def eval_reviews():
    return pd.DataFrame({
        "review_id":      ["e01", "e02", "e03", "e04"],
        "review_text":    ["great sound", "broke on day two", "unseenword", "love the battery"],
        "liked":          [1, 0, 0, 1],
        "rating_number":  [50, 7, 12, 90],
        "average_rating": [4.3, 2.2, 3.0, 4.7],
    })
