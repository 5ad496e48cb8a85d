import numpy as np
import xgboost as xgb

from review_vocab.models.base import BaseScoringModel


class BoostedTreeModel(BaseScoringModel):
    """
    Gradient-boosted trees over the review feature matrix.

    A thin wrapper around xgboost.XGBClassifier. Arrays are handed to
    xgboost without column names since terms and aggregate names are not
    guaranteed to be valid xgboost feature names; the schema keeps them.
    """

    def __init__(self, threshold=0.5, n_estimators=300, max_depth=6,
                 learning_rate=0.1, random_state=42, **params):
        super().__init__(threshold=threshold)
        self.params = {
            "n_estimators":  n_estimators,
            "max_depth":     max_depth,
            "learning_rate": learning_rate,
            "random_state":  random_state,
            "eval_metric":   "logloss",
            **params,
        }
        self.clf_ = None

    def _fit(self, X, y):
        self.clf_ = xgb.XGBClassifier(**self.params)
        self.clf_.fit(X, y)

    def _predict_proba(self, X):
        return self.clf_.predict_proba(X)[:, 1]

    def get_feature_importance(self):
        importances = self.clf_.feature_importances_
        return {col: float(v) for col, v in zip(self.schema_.columns, importances)}

    def top_features(self, n=15):
        """Schema columns ranked by importance, highest first."""
        importance = self.get_feature_importance()
        ranked     = sorted(importance.items(), key=lambda kv: kv[1], reverse=True)
        return ranked[:n]

    def get_params(self):
        return {**super().get_params(), **self.params}
