"""
Save and restore a fitted model together with its training schema.

The schema is what lets a later evaluation set be projected onto the
model's columns, so the two are always written and read as a pair.
"""

import pickle
from pathlib import Path

from review_vocab.errors import SchemaError
from review_vocab.features.schema import FeatureSchema

MODEL_FILE  = "model.pkl"
SCHEMA_FILE = "schema.json"


def save_artifacts(out_dir, model, schema):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    with open(out_dir / MODEL_FILE, "wb") as f:
        pickle.dump(model, f)
    schema.save(out_dir / SCHEMA_FILE)
    return out_dir / MODEL_FILE, out_dir / SCHEMA_FILE


def load_artifacts(out_dir):
    out_dir = Path(out_dir)
    missing = [name for name in (MODEL_FILE, SCHEMA_FILE) if not (out_dir / name).exists()]
    if missing:
        raise FileNotFoundError(f"{out_dir} is missing {missing}")

    with open(out_dir / MODEL_FILE, "rb") as f:
        model = pickle.load(f)
    schema = FeatureSchema.load(out_dir / SCHEMA_FILE)
    if getattr(model, "schema_", None) is not None and model.schema_.columns != schema.columns:
        raise SchemaError(f"{SCHEMA_FILE} does not match the schema the model was fitted on")
    return model, schema
