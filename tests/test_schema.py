"""Projection of evaluation matrices onto the training schema."""

import numpy as np
import pandas as pd
import pytest

from review_vocab.errors import SchemaError, SchemaMismatchError
from review_vocab.features.augment import augment
from review_vocab.features.schema import FeatureSchema, project
from review_vocab.features.tokenizer import count_terms


@pytest.fixture
def schema():
    return FeatureSchema(
        columns=("review_len", "good", "bad"),
        feature_columns=("review_len",),
        id_column="review_id",
        label_column="liked",
    )


def eval_frame(rows, columns):
    frame = pd.DataFrame(rows, columns=columns)
    frame.index = pd.Index(range(100, 100 + len(frame)), name="review_id")
    return frame


class TestProject:
    def test_exact_schema_columns(self, schema):
        frame = eval_frame([[3, 1, 0, 2], [5, 0, 0, 1]], ["review_len", "good", "unseen", "meh"])
        out = project(frame, schema)
        assert list(out.columns) == list(schema.columns)

    def test_absent_columns_are_zero(self, schema):
        frame = eval_frame([[3, 1], [5, 0]], ["review_len", "good"])
        out = project(frame, schema)
        assert out["bad"].tolist() == [0, 0]
        assert out["good"].tolist() == [1, 0]

    def test_values_carried_over(self, schema):
        frame = eval_frame([[3, 2, 7]], ["bad", "review_len", "good"])
        out = project(frame, schema)
        assert out.iloc[0].tolist() == [2, 7, 3]

    def test_label_not_a_feature(self, schema):
        frame = eval_frame([[3, 1, 0, 1]], ["review_len", "good", "bad", "liked"])
        out = project(frame, schema)
        assert "liked" not in out.columns

    def test_empty_evaluation_set(self, schema):
        frame = eval_frame([], ["review_len", "good"])
        out = project(frame, schema)
        assert list(out.columns) == list(schema.columns)
        assert len(out) == 0

    def test_idempotent(self, schema):
        frame = eval_frame([[3, 1, 0], [5, 0, 2]], ["review_len", "good", "bad"])
        once  = project(frame, schema)
        pd.testing.assert_frame_equal(once, frame)
        pd.testing.assert_frame_equal(project(once, schema), once)

    def test_rows_preserved(self, schema):
        frame = eval_frame([[1, 1], [2, 0], [3, 4]], ["review_len", "zzz"])
        out = project(frame, schema)
        assert list(out.index) == list(frame.index)

    def test_no_missing_cells(self, schema):
        frame = eval_frame([[np.nan, 1]], ["review_len", "good"])
        out = project(frame, schema)
        assert not out.isna().any().any()

    def test_input_not_modified(self, schema):
        frame = eval_frame([[3, 1, 9]], ["review_len", "good", "extra"])
        project(frame, schema)
        assert list(frame.columns) == ["review_len", "good", "extra"]

    def test_unseen_word_projects_to_zero_terms(self):
        schema = FeatureSchema(("good", "bad"), (), "review_id")
        counts = count_terms(["unseenword"], ["e1"])
        meta   = pd.DataFrame({"review_id": ["e1"]})
        matrix = augment(counts, meta, "review_id", None, [])
        out = project(matrix, schema)
        assert out.loc["e1"].tolist() == [0, 0]


class TestSchema:
    def test_check_passes(self, schema):
        frame = eval_frame([[1, 0, 0]], list(schema.columns))
        schema.check(frame)

    def test_check_missing(self, schema):
        frame = eval_frame([[1, 0]], ["review_len", "good"])
        with pytest.raises(SchemaMismatchError) as info:
            schema.check(frame)
        assert info.value.missing == ["bad"]

    def test_check_extra(self, schema):
        frame = eval_frame([[1, 0, 0, 1]], ["review_len", "good", "bad", "ugly"])
        with pytest.raises(SchemaMismatchError) as info:
            schema.check(frame)
        assert info.value.extra == ["ugly"]

    def test_check_order(self, schema):
        frame = eval_frame([[0, 1, 0]], ["good", "review_len", "bad"])
        with pytest.raises(SchemaMismatchError) as info:
            schema.check(frame)
        assert info.value.misordered

    def test_duplicate_columns_rejected(self):
        with pytest.raises(SchemaError):
            FeatureSchema(("good", "good"), (), "review_id")

    def test_label_cannot_be_feature(self):
        with pytest.raises(SchemaError):
            FeatureSchema(("liked", "good"), (), "review_id", "liked")

    def test_terms(self, schema):
        assert schema.terms == ("good", "bad")

    def test_from_matrix(self):
        matrix = eval_frame([[2, 1, 0, 1]], ["review_len", "good", "bad", "liked"])
        schema = FeatureSchema.from_matrix(matrix, ["review_len"], "review_id", "liked")
        assert schema.columns == ("review_len", "good", "bad")

    def test_save_and_load(self, schema, tmp_path):
        path = tmp_path / "schema.json"
        schema.save(path)
        assert FeatureSchema.load(path) == schema
