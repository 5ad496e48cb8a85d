"""
Tokenizer adapter: raw review text -> TermCounts.

Wraps sklearn's CountVectorizer with the cleaning options the pipeline
exposes (stopwords, numerals, stemming). count_terms applies no frequency
filter; apply_sparsity does that against whatever documents it is given.
"""

import logging
import re
from dataclasses import dataclass

import nltk
import numpy as np
from nltk.stem import SnowballStemmer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS, CountVectorizer

from review_vocab.errors import ConfigError
from review_vocab.features.term_counts import TermCounts

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"(?u)\b\w\w+\b")   # CountVectorizer's default pattern


def ensure_nltk_stopwords():
    try:
        nltk.data.find("corpora/stopwords")
    except LookupError:
        nltk.download("stopwords", quiet=True)


@dataclass(frozen=True)
class TokenizerConfig:
    language: str = "english"
    remove_stopwords: bool = True
    remove_numbers: bool = True
    stem_words: bool = False
    lowercase: bool = True

    def __post_init__(self):
        if self.stem_words and self.language not in SnowballStemmer.languages:
            raise ConfigError(f"no Snowball stemmer for language '{self.language}'")

    def stopwords(self):
        if not self.remove_stopwords:
            return frozenset()
        if self.language == "english":
            return ENGLISH_STOP_WORDS
        ensure_nltk_stopwords()
        from nltk.corpus import stopwords
        try:
            return frozenset(stopwords.words(self.language))
        except OSError as exc:
            raise ConfigError(f"no stopword list for language '{self.language}'") from exc


def build_analyzer(config):
    """Return a callable mapping one document to its list of terms."""
    stop    = config.stopwords()
    stemmer = SnowballStemmer(config.language) if config.stem_words else None

    def analyze(text):
        text = "" if text is None else str(text)
        if config.lowercase:
            text = text.lower()
        tokens = TOKEN_RE.findall(text)
        if config.remove_numbers:
            # "2024" goes, "mp3" stays
            tokens = [t for t in tokens if not t.isdigit()]
        if stop:
            tokens = [t for t in tokens if t not in stop]
        if stemmer is not None:
            tokens = [stemmer.stem(t) for t in tokens]
        return tokens

    return analyze


def _pretokenized(tokens):
    return tokens


def count_terms(texts, doc_ids, config=None):
    """
    Count every term in every document. No sparsity filter is applied.

    Columns come out sorted, so the result is deterministic for fixed input.
    A corpus with no surviving tokens gives a zero-column table.
    """
    config  = config or TokenizerConfig()
    doc_ids = np.asarray(doc_ids)
    texts   = list(texts)
    if len(texts) != len(doc_ids):
        raise ConfigError(f"{len(texts)} texts but {len(doc_ids)} document ids")

    analyze = build_analyzer(config)
    tokens  = [analyze(t) for t in texts]
    if not any(tokens):
        return TermCounts.empty(doc_ids)

    vec = CountVectorizer(analyzer=_pretokenized)
    X   = vec.fit_transform(tokens)
    return TermCounts(matrix=X, doc_ids=doc_ids, terms=vec.get_feature_names_out())


def check_sparsity(theta):
    if not 0.0 < theta < 1.0:
        raise ConfigError(f"sparsity threshold must lie in (0, 1), got {theta}")


def apply_sparsity(counts, theta):
    """
    Keep terms present in at least (1 - theta) of the table's documents.

    theta close to 1 keeps almost everything; smaller theta is stricter.
    """
    check_sparsity(theta)
    if counts.n_docs == 0 or counts.n_terms == 0:
        return TermCounts.empty(counts.doc_ids)

    # tolerance: 1 - 0.7 is 0.30000000000000004 in floating point
    bound = (1.0 - theta) * counts.n_docs - 1e-9
    keep  = counts.document_frequency() >= bound
    logger.debug("sparsity %.3f keeps %d of %d terms", theta, keep.sum(), counts.n_terms)
    return counts.select_terms(keep)


def tokenize(texts, doc_ids, config=None, theta=None):
    """Count terms, then drop those below the document-frequency bound."""
    counts = count_terms(texts, doc_ids, config)
    if theta is None:
        return counts
    return apply_sparsity(counts, theta)
