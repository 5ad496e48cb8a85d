import numpy as np
import pandas as pd
import pytest

from review_vocab.errors import ConfigError, SchemaError, SchemaMismatchError
from review_vocab.features.schema import FeatureSchema
from review_vocab.models.artifacts import load_artifacts, save_artifacts
from review_vocab.models.boosted_trees import BoostedTreeModel


@pytest.fixture
def schema():
    return FeatureSchema(("review_len", "great", "broke"), ("review_len",), "review_id", "liked")


@pytest.fixture
def training_data(schema):
    rng = np.random.default_rng(0)
    n = 80
    y = np.array([1] * 60 + [0] * 20)
    X = pd.DataFrame({
        "review_len": rng.integers(3, 40, n),
        "great":      np.where(y == 1, rng.integers(1, 3, n), 0),
        "broke":      np.where(y == 0, rng.integers(1, 3, n), 0),
    }, columns=list(schema.columns))
    return X, y


def small_model(**kwargs):
    return BoostedTreeModel(n_estimators=50, max_depth=2, **kwargs)


class TestBoostedTreeModel:
    def test_fit_and_predict(self, schema, training_data):
        X, y = training_data
        model = small_model().fit(X, y, schema)
        proba = model.predict_proba(X)
        assert proba.shape == (len(X),)
        assert ((proba >= 0) & (proba <= 1)).all()
        assert (model.predict(X) == y).mean() > 0.9

    def test_threshold_is_configurable(self, schema, training_data):
        X, y = training_data
        model = small_model(threshold=0.8).fit(X, y, schema)
        proba = model.predict_proba(X)
        assert (model.predict(X) == (proba >= 0.8)).all()
        assert (model.predict(X, threshold=0.0) == 1).all()

    def test_rejects_mismatched_matrix(self, schema, training_data):
        X, y = training_data
        model = small_model().fit(X, y, schema)
        with pytest.raises(SchemaMismatchError):
            model.predict_proba(X.drop(columns=["broke"]))
        with pytest.raises(SchemaMismatchError):
            model.predict_proba(X.assign(refund=0))
        with pytest.raises(SchemaMismatchError):
            model.predict_proba(X[["great", "review_len", "broke"]])

    def test_empty_prediction_matrix(self, schema, training_data):
        X, y = training_data
        model = small_model().fit(X, y, schema)
        assert model.predict_proba(X.iloc[:0]).shape == (0,)

    def test_single_class_rejected(self, schema, training_data):
        X, _ = training_data
        with pytest.raises(ConfigError):
            small_model().fit(X, np.ones(len(X)), schema)

    def test_non_binary_labels_rejected(self, schema, training_data):
        X, y = training_data
        with pytest.raises(ConfigError):
            small_model().fit(X, y * 2, schema)

    def test_unfitted(self, training_data):
        X, _ = training_data
        with pytest.raises(RuntimeError):
            small_model().predict_proba(X)

    def test_params_include_hyperparameters(self, schema, training_data):
        X, y  = training_data
        model = small_model(threshold=0.7)
        assert model.get_params()["n_features"] is None

        params = model.fit(X, y, schema).get_params()
        assert params["threshold"] == 0.7
        assert params["n_estimators"] == 50
        assert params["is_fitted"]
        assert params["n_features"] == len(schema)

    def test_bad_threshold(self):
        with pytest.raises(ConfigError):
            BoostedTreeModel(threshold=1.5)

    def test_feature_importance_keyed_by_schema(self, schema, training_data):
        X, y = training_data
        model = small_model().fit(X, y, schema)
        assert set(model.get_feature_importance()) == set(schema.columns)
        assert len(model.top_features(n=2)) == 2


class TestArtifacts:
    def test_round_trip(self, schema, training_data, tmp_path):
        X, y = training_data
        model = small_model().fit(X, y, schema)
        save_artifacts(tmp_path, model, schema)

        loaded, loaded_schema = load_artifacts(tmp_path)
        assert loaded_schema == schema
        np.testing.assert_allclose(loaded.predict_proba(X), model.predict_proba(X))

    def test_missing_schema_file(self, schema, training_data, tmp_path):
        X, y = training_data
        save_artifacts(tmp_path, small_model().fit(X, y, schema), schema)
        (tmp_path / "schema.json").unlink()
        with pytest.raises(FileNotFoundError):
            load_artifacts(tmp_path)

    def test_schema_file_must_match_model(self, schema, training_data, tmp_path):
        X, y = training_data
        save_artifacts(tmp_path, small_model().fit(X, y, schema), schema)
        FeatureSchema(("review_len", "great"), ("review_len",), "review_id").save(
            tmp_path / "schema.json"
        )
        with pytest.raises(SchemaError):
            load_artifacts(tmp_path)
