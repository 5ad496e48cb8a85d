"""
Training feature schema and projection of evaluation matrices onto it.

The schema is the ordered column list the model was fitted on. It is fixed
once the training matrix is built; evaluation matrices are reindexed to it
and never the other way round.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from review_vocab.errors import SchemaError, SchemaMismatchError
from review_vocab.features.term_counts import fill_missing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSchema:
    columns: Tuple[str, ...]
    feature_columns: Tuple[str, ...]
    id_column: str
    label_column: Optional[str] = None

    def __post_init__(self):
        columns = tuple(str(c) for c in self.columns)
        if len(set(columns)) != len(columns):
            raise SchemaError("schema columns must be unique")
        if not set(self.feature_columns) <= set(columns):
            raise SchemaError("aggregate feature columns must be part of the schema")
        if self.label_column is not None and self.label_column in columns:
            raise SchemaError(f"label column '{self.label_column}' cannot be a feature")
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "feature_columns", tuple(self.feature_columns))

    @classmethod
    def from_matrix(cls, matrix, feature_columns, id_column, label_column=None):
        """Every column of an augmented matrix except the label."""
        columns = [c for c in matrix.columns if c != label_column]
        return cls(tuple(columns), tuple(feature_columns), id_column, label_column)

    @property
    def reserved_names(self):
        """Column names a term has to be renamed away from."""
        names = {self.id_column, *self.feature_columns}
        if self.label_column is not None:
            names.add(self.label_column)
        return names

    @property
    def terms(self):
        aggregates = set(self.feature_columns)
        return tuple(c for c in self.columns if c not in aggregates)

    def __len__(self):
        return len(self.columns)

    def check(self, X):
        """Raise SchemaMismatchError unless X has exactly these columns, in order."""
        actual = list(X.columns)
        if actual == list(self.columns):
            return
        expected = set(self.columns)
        seen     = set(actual)
        missing  = [c for c in self.columns if c not in seen]
        extra    = [c for c in actual if c not in expected]
        raise SchemaMismatchError(missing, extra, misordered=not (missing or extra))

    def to_dict(self):
        return {
            "columns":         list(self.columns),
            "feature_columns": list(self.feature_columns),
            "id_column":       self.id_column,
            "label_column":    self.label_column,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            columns=tuple(data["columns"]),
            feature_columns=tuple(data["feature_columns"]),
            id_column=data["id_column"],
            label_column=data.get("label_column"),
        )

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path):
        with open(path) as f:
            return cls.from_dict(json.load(f))


def project(matrix, schema):
    """
    Reindex `matrix` to exactly the schema's columns.

    Schema columns the matrix lacks are filled with 0 (a training term that
    never occurs in the evaluation reviews). Matrix columns outside the
    schema, including the label, are dropped. An empty matrix comes back as
    zero rows with every schema column.
    """
    columns = list(schema.columns)
    known   = set(columns)
    present = set(matrix.columns)

    unseen = [c for c in matrix.columns if c not in known and c != schema.label_column]
    if unseen:
        logger.debug("dropping %d columns not in the training schema", len(unseen))
    absent = [c for c in columns if c not in present]
    if absent:
        logger.debug("adding %d zero columns for schema terms absent here", len(absent))

    out = matrix.reindex(columns=columns, fill_value=0)
    out = fill_missing(out, columns)
    schema.check(out)
    return out
