"""
Join term counts with per-review aggregate features.
"""

import logging

import numpy as np
import pandas as pd

from review_vocab.errors import ConfigError, SchemaError
from review_vocab.features.term_counts import densify, fill_missing

logger = logging.getLogger(__name__)

# Appended to a term that collides with a metadata column name
TERM_SUFFIX = "__term"


def aggregate_columns(metadata, id_column, label_column=None):
    """Numeric metadata columns other than the id and the label."""
    skip = {id_column, label_column}
    return [
        c for c in metadata.columns
        if c not in skip and pd.api.types.is_numeric_dtype(metadata[c])
    ]


def term_column_names(terms, reserved):
    return [f"{t}{TERM_SUFFIX}" if t in reserved else t for t in terms]


def augment(counts, metadata, id_column, label_column=None, feature_columns=None,
            reserved=None):
    """
    Inner-join a TermCounts with a metadata table on the document id.

    Columns of the result: aggregate features, then terms, then the label
    (when label_column is given). Index is the document id, sorted.

    Reviews present on only one side are dropped. Both counts are logged and
    kept in result.attrs["dropped_rows"]; a well-formed pipeline drops none.

    Term cells are zero-filled: a missing count can only mean the term did
    not occur. Missing aggregate values are zero-filled too.

    `reserved` adds names a term must not take even though this metadata
    lacks them, so an evaluation split renames terms the way training did.
    """
    if feature_columns is None:
        feature_columns = aggregate_columns(metadata, id_column, label_column)
    feature_columns = list(feature_columns)

    wanted  = [id_column, *feature_columns] + ([label_column] if label_column else [])
    missing = [c for c in wanted if c not in metadata.columns]
    if missing:
        raise ConfigError(f"metadata is missing columns {missing}")
    if metadata[id_column].duplicated().any():
        raise SchemaError(f"metadata has duplicate values in '{id_column}'")

    reserved = {id_column, label_column, *feature_columns, *(reserved or ())}
    terms = densify(counts, index_name=id_column)
    terms.columns = term_column_names(terms.columns, reserved)
    term_cols = list(terms.columns)
    if len(set(term_cols)) != len(term_cols):
        raise SchemaError(f"renaming terms with suffix '{TERM_SUFFIX}' produced duplicates")

    meta = metadata.set_index(id_column)[feature_columns + ([label_column] if label_column else [])]

    terms_only = terms.index.difference(meta.index)
    meta_only  = meta.index.difference(terms.index)
    if len(terms_only) or len(meta_only):
        logger.warning(
            "join on '%s' dropped %d reviews without metadata and %d metadata rows without text",
            id_column, len(terms_only), len(meta_only),
        )

    joined = meta.join(terms, how="inner").sort_index()
    joined = fill_missing(joined, term_cols, dtype=np.int64)
    joined = fill_missing(joined, feature_columns)

    order  = feature_columns + term_cols + ([label_column] if label_column else [])
    result = joined[order]
    result.attrs["dropped_rows"] = {
        "without_metadata": int(len(terms_only)),
        "without_text":     int(len(meta_only)),
    }
    return result
