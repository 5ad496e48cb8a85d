"""
Sparse document-term count tables.

A TermCounts holds raw occurrence counts as a CSR matrix with one row per
document and one column per term. A cell that is not stored is a count of
zero; that is the only way a term can be "missing" for a document, which is
what makes the zero-fill in fill_missing / densify safe.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import sparse

from review_vocab.errors import SchemaError


@dataclass(frozen=True)
class TermCounts:
    matrix: sparse.csr_matrix
    doc_ids: np.ndarray
    terms: np.ndarray

    def __post_init__(self):
        matrix  = sparse.csr_matrix(self.matrix, dtype=np.int64)
        doc_ids = np.asarray(self.doc_ids)
        terms   = np.asarray(self.terms, dtype=object)

        if matrix.shape != (len(doc_ids), len(terms)):
            raise SchemaError(
                f"count matrix shape {matrix.shape} does not match "
                f"{len(doc_ids)} documents x {len(terms)} terms"
            )
        if len(pd.unique(doc_ids)) != len(doc_ids):
            raise SchemaError("document ids in a term table must be unique")
        if len(set(terms)) != len(terms):
            raise SchemaError("terms in a term table must be unique")

        # frozen dataclass: normalise fields in place once
        object.__setattr__(self, "matrix", matrix)
        object.__setattr__(self, "doc_ids", doc_ids)
        object.__setattr__(self, "terms", terms)

    @classmethod
    def empty(cls, doc_ids):
        """Zero-column table over the given documents."""
        doc_ids = np.asarray(doc_ids)
        return cls(
            matrix=sparse.csr_matrix((len(doc_ids), 0), dtype=np.int64),
            doc_ids=doc_ids,
            terms=np.array([], dtype=object),
        )

    @property
    def n_docs(self):
        return self.matrix.shape[0]

    @property
    def n_terms(self):
        return self.matrix.shape[1]

    @property
    def vocabulary(self):
        return frozenset(self.terms)

    def document_frequency(self):
        """Number of documents each term occurs in at least once."""
        return np.asarray((self.matrix > 0).sum(axis=0)).ravel()

    def select_terms(self, mask):
        mask = np.asarray(mask, dtype=bool)
        return TermCounts(
            matrix=self.matrix[:, np.flatnonzero(mask)],
            doc_ids=self.doc_ids.copy(),
            terms=self.terms[mask],
        )

    def select_documents(self, mask):
        mask = np.asarray(mask, dtype=bool)
        return TermCounts(
            matrix=self.matrix[np.flatnonzero(mask)],
            doc_ids=self.doc_ids[mask],
            terms=self.terms.copy(),
        )

    def reindex_terms(self, terms):
        """
        Re-express the table over another term list.

        Terms this table lacks become all-zero columns; terms it has that are
        not in `terms` are dropped.
        """
        terms    = np.asarray(terms, dtype=object)
        position = {t: i for i, t in enumerate(self.terms)}

        src = [position[t] for t in terms if t in position]
        dst = [j for j, t in enumerate(terms) if t in position]

        # column selector: source column i lands in destination column j
        selector = sparse.csr_matrix(
            (np.ones(len(src), dtype=np.int64),
             (np.array(src, dtype=np.int64), np.array(dst, dtype=np.int64))),
            shape=(self.n_terms, len(terms)),
        )
        return TermCounts(
            matrix=self.matrix @ selector,
            doc_ids=self.doc_ids.copy(),
            terms=terms,
        )


def densify(counts, index_name=None):
    """
    Materialise a TermCounts as a dense DataFrame indexed by document id.

    Unstored cells become 0, never NaN.
    """
    index = pd.Index(counts.doc_ids, name=index_name)
    return pd.DataFrame(
        counts.matrix.toarray(),
        index=index,
        columns=pd.Index(counts.terms, dtype=object),
    )


def fill_missing(frame, columns=None, value=0, dtype=None):
    """
    Return a copy of `frame` with NaN replaced by `value` in `columns`.

    Pass dtype=np.int64 for term-count columns that a join upcast to float.
    """
    out = frame.copy()
    columns = list(out.columns if columns is None else columns)
    if not columns:
        return out

    filled = out[columns].fillna(value)
    if dtype is not None:
        filled = filled.astype(dtype)
    out[columns] = filled
    return out
