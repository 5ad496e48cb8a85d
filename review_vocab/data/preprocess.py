import logging
import re
from pathlib import Path

import pandas as pd

from review_vocab.errors import ConfigError, SchemaError

logger = logging.getLogger(__name__)


def read_table(path):
    path   = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix in (".jsonl", ".json"):
        return pd.read_json(path, lines=suffix == ".jsonl")
    raise ConfigError(f"unsupported table format '{suffix}' for {path}")


def write_table(df, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        df.to_csv(path)
    else:
        df.to_parquet(path)
    return path


def clean_text(text):
    text = re.sub(r"<[^>]+>", " ", text)       # strip HTML tags
    text = re.sub(r"\s+", " ", text).strip()
    return text


def clean_reviews(df, id_column, text_column, label_column=None):
    """
    Normalise a review table: text cleaned, review_len added, labels checked.

    label_column=None (or a table without it) means labels are unknown, as
    for an evaluation split scored blind.
    """
    missing = [c for c in (id_column, text_column) if c not in df.columns]
    if missing:
        raise ConfigError(f"review table is missing columns {missing}")
    if df[id_column].duplicated().any():
        raise SchemaError(f"duplicate review ids in '{id_column}'")

    df = df.copy()
    df[text_column] = df[text_column].fillna("").astype(str).apply(clean_text)
    if "review_len" not in df.columns:
        df["review_len"] = df[text_column].str.split().str.len().fillna(0).astype(int)

    if label_column and label_column in df.columns:
        if df[label_column].isna().any():
            raise ConfigError(f"'{label_column}' has missing labels")
        labels = df[label_column].astype(int)
        bad = set(labels.unique()) - {0, 1}
        if bad:
            raise ConfigError(f"labels must be 0/1, found {sorted(bad)}")
        df[label_column] = labels

    return df


def metadata_from_reviews(df, text_column):
    """Aggregate feature source when no separate metadata file is supplied."""
    return df.drop(columns=[text_column])


def merge_metadata(reviews, metadata, id_column, label_column=None):
    """
    Prepare a separate aggregate feature table for the join.

    One metadata file may cover several splits, so it is cut down to the
    ids of this split first. Label and review_len are filled in from the
    reviews when the file does not carry them. Reviews with no metadata row
    are left alone: the feature join drops and counts them.
    """
    if id_column not in metadata.columns:
        raise ConfigError(f"metadata is missing '{id_column}'")
    if metadata[id_column].duplicated().any():
        raise SchemaError(f"duplicate ids in metadata '{id_column}'")

    in_split = metadata[id_column].isin(reviews[id_column])
    logger.info("metadata: %d rows for this split, %d for others", in_split.sum(), (~in_split).sum())
    metadata = metadata[in_split]

    extra = [
        c for c in (label_column, "review_len")
        if c and c in reviews.columns and c not in metadata.columns
    ]
    if extra:
        metadata = metadata.merge(reviews[[id_column, *extra]], on=id_column, how="left")
    return metadata.reset_index(drop=True)


def load_reviews(path, id_column, text_column, label_column=None, metadata_path=None):
    """
    Read one split and its aggregate features.

    Returns (reviews, metadata): reviews holds id, text and label; metadata
    holds id, label and every numeric aggregate.
    """
    reviews = clean_reviews(read_table(path), id_column, text_column, label_column)
    if metadata_path is None:
        metadata = metadata_from_reviews(reviews, text_column)
    else:
        metadata = merge_metadata(reviews, read_table(metadata_path), id_column, label_column)
    return reviews, metadata
