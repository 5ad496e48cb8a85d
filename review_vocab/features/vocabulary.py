"""
Class-conditional vocabularies and their merge into one term table.

The sparsity bound is applied inside each class rather than over the whole
corpus. With a global bound a term confined to the minority class would
need to appear in (1 - theta) / class_share of that class's reviews to
survive, so discriminative not-liked vocabulary gets pruned away first.
"""

import logging

import numpy as np
from scipy import sparse
from tqdm import tqdm

from review_vocab.errors import ConfigError, SchemaError
from review_vocab.features.term_counts import TermCounts
from review_vocab.features.tokenizer import apply_sparsity, count_terms

logger = logging.getLogger(__name__)


def build_class_vocabulary(texts, doc_ids, theta, config=None, label=None):
    """
    Term table for the reviews of a single class.

    The caller passes only that class's reviews. Columns are the terms found
    in at least (1 - theta) of them; an empty class or a threshold nothing
    survives gives a zero-column table and a warning.
    """
    counts = count_terms(texts, doc_ids, config)
    kept   = apply_sparsity(counts, theta)

    if kept.n_docs == 0:
        logger.warning("class %s has no documents; contributing no terms", label)
    elif kept.n_terms == 0:
        logger.warning(
            "class %s: no term reaches %.1f%% of %d documents at sparsity %.3f",
            label, 100 * (1 - theta), kept.n_docs, theta,
        )
    else:
        logger.info("class %s: kept %d of %d terms", label, kept.n_terms, counts.n_terms)
    return kept


def build_class_vocabularies(df, text_column, id_column, label_column,
                             thresholds, config=None, default_theta=None, labels=None):
    """
    Run build_class_vocabulary once per label.

    `labels` defaults to those present in `df`; a listed label with no rows
    yields an empty table.

    `thresholds` maps label -> theta; labels it lacks use `default_theta`.
    Returns {label: TermCounts}, ordered by label.
    """
    tables = {}
    if labels is None:
        labels = df[label_column].unique()
    labels = sorted(labels)
    for label in tqdm(labels, desc="class vocabularies", disable=len(labels) < 2):
        theta  = thresholds.get(label, default_theta)
        if theta is None:
            raise ConfigError(f"no sparsity threshold for class {label}")
        subset = df[df[label_column] == label]
        tables[label] = build_class_vocabulary(
            subset[text_column].tolist(),
            subset[id_column].to_numpy(),
            theta,
            config,
            label=label,
        )
    return tables


def union_terms(tables):
    """Union of term lists in first-seen order."""
    terms, seen = [], set()
    for table in tables:
        for term in table.terms:
            if term not in seen:
                seen.add(term)
                terms.append(term)
    return np.array(terms, dtype=object)


def merge_vocabularies(tables):
    """
    Stack term tables built over disjoint document sets.

    Every document appears once; columns are the union of all input terms
    and a document gets 0 for a term its own table did not keep. Rows come
    back sorted by document id so later joins line up with metadata ordered
    the same way. Which table a row came from is not recorded.
    """
    tables = list(tables)
    terms  = union_terms(tables)

    if not tables:
        return TermCounts(sparse.csr_matrix((0, 0), dtype=np.int64), np.array([]), terms)

    doc_ids = np.concatenate([t.doc_ids for t in tables])
    values, counts = np.unique(doc_ids, return_counts=True)
    if (counts > 1).any():
        dupes = values[counts > 1]
        raise SchemaError(
            f"{len(dupes)} document ids appear in more than one table "
            f"(e.g. {list(dupes[:5])})"
        )

    blocks = [t.reindex_terms(terms).matrix for t in tables if t.n_docs > 0]
    if blocks:
        stacked = sparse.vstack(blocks, format="csr")
    else:
        stacked = sparse.csr_matrix((0, len(terms)), dtype=np.int64)

    order = np.argsort(doc_ids, kind="stable")
    return TermCounts(matrix=stacked[order], doc_ids=doc_ids[order], terms=terms)
