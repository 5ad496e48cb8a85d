"""
Base class for review scoring models.

This module defines the interface the pipeline trains and predicts through.
A model remembers the feature schema it was fitted on and refuses any
prediction matrix that does not carry exactly that schema.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from review_vocab.errors import ConfigError
from review_vocab.features.schema import FeatureSchema


class BaseScoringModel(ABC):
    """
    Abstract base class for binary review classifiers.

    Concrete models implement _fit and _predict_proba on plain arrays; this
    class handles the schema bookkeeping and the decision threshold.
    """

    def __init__(self, threshold: float = 0.5):
        """
        Initialize the model.

        Parameters
        ----------
        threshold : float, default=0.5
            Probability at or above which predict() returns 1. Pick it on
            held-out data; no value is right for every corpus.
        """
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"threshold must lie in [0, 1], got {threshold}")
        self.threshold = threshold
        self.is_fitted = False

        # Set during training
        self.schema_: Optional[FeatureSchema] = None

    def fit(self, X: pd.DataFrame, y, schema: FeatureSchema) -> 'BaseScoringModel':
        """
        Fit the model on a training matrix.

        Parameters
        ----------
        X : pd.DataFrame of shape (n_reviews, len(schema))
            Feature columns only, in schema order
        y : array-like of shape (n_reviews,)
            Binary labels in {0, 1}
        schema : FeatureSchema
            Schema X was built with; stored for prediction time

        Returns
        -------
        self : BaseScoringModel
            Fitted model
        """
        schema.check(X)
        y = np.asarray(y).astype(int)
        if len(y) != len(X):
            raise ConfigError(f"{len(X)} rows but {len(y)} labels")
        classes = set(np.unique(y))
        if not classes <= {0, 1}:
            raise ConfigError(f"labels must be 0/1, got {sorted(classes)}")
        if classes != {0, 1}:
            raise ConfigError("training labels contain a single class")

        self.schema_ = schema
        self._fit(X.to_numpy(dtype=np.float32), y)
        self.is_fitted = True
        return self

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """
        Probability of the positive class for each row.

        Parameters
        ----------
        X : pd.DataFrame
            Matrix projected onto the training schema

        Returns
        -------
        proba : np.ndarray of shape (n_reviews,)
        """
        if not self.is_fitted:
            raise RuntimeError("model is not fitted")
        self.schema_.check(X)
        if len(X) == 0:
            return np.empty(0, dtype=float)
        return self._predict_proba(X.to_numpy(dtype=np.float32))

    def predict(self, X: pd.DataFrame, threshold: Optional[float] = None) -> np.ndarray:
        threshold = self.threshold if threshold is None else threshold
        return (self.predict_proba(X) >= threshold).astype(int)

    @abstractmethod
    def _fit(self, X: np.ndarray, y: np.ndarray) -> None:
        pass

    @abstractmethod
    def _predict_proba(self, X: np.ndarray) -> np.ndarray:
        pass

    def get_feature_importance(self) -> Dict[str, float]:
        """
        Get feature importance scores keyed by schema column.

        Returns
        -------
        importance : dict
            Feature importance scores (implementation-dependent)
        """
        raise NotImplementedError("Subclasses should implement feature importance")

    def get_params(self) -> Dict[str, Any]:
        return {
            'threshold': self.threshold,
            'is_fitted': self.is_fitted,
            'n_features': len(self.schema_) if self.schema_ is not None else None,
        }
