"""
Shared pipeline: reviews -> aligned train / eval matrices -> fitted model.

Centralising this ensures the training schema is computed once per run and
every evaluation matrix is projected onto exactly that schema.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, f1_score, roc_auc_score

from review_vocab.data.preprocess import load_reviews, write_table
from review_vocab.errors import ConfigError
from review_vocab.features.augment import aggregate_columns, augment
from review_vocab.features.schema import FeatureSchema, project
from review_vocab.features.tokenizer import tokenize
from review_vocab.features.vocabulary import build_class_vocabularies, merge_vocabularies
from review_vocab.models.artifacts import load_artifacts, save_artifacts
from review_vocab.models.boosted_trees import BoostedTreeModel

logger = logging.getLogger(__name__)

CLASSES = (0, 1)


def build_training_matrix(reviews, metadata, config):
    """
    Per-class vocabularies, merged and joined with the aggregates.

    Returns (matrix, schema). matrix holds the schema columns plus the label.
    """
    if config.label_column not in reviews.columns:
        raise ConfigError(f"training reviews need labels in '{config.label_column}'")

    tables = build_class_vocabularies(
        reviews,
        text_column=config.text_column,
        id_column=config.id_column,
        label_column=config.label_column,
        thresholds={label: config.sparsity_for(label) for label in CLASSES},
        config=config.tokenizer,
        labels=CLASSES,
    )
    merged = merge_vocabularies(tables.values())

    feature_columns = aggregate_columns(metadata, config.id_column, config.label_column)
    matrix = augment(merged, metadata, config.id_column, config.label_column, feature_columns)
    schema = FeatureSchema.from_matrix(
        matrix, feature_columns, config.id_column, config.label_column
    )
    return matrix, schema


def split_features(matrix, schema):
    """(X, y): schema columns in order, and the label column if present."""
    X = matrix[list(schema.columns)]
    schema.check(X)
    y = None
    if schema.label_column and schema.label_column in matrix.columns:
        y = matrix[schema.label_column].astype(int)
    return X, y


def build_evaluation_matrix(reviews, metadata, schema, config):
    """
    Evaluation matrix projected onto the training schema.

    The vocabulary comes from the evaluation text alone; labels, if the split
    has them, are returned separately and never touch the features.
    Returns (X, y) with y None for an unlabelled split.
    """
    counts = tokenize(
        reviews[config.text_column].tolist(),
        reviews[config.id_column].to_numpy(),
        config.tokenizer,
        theta=config.eval_sparsity,
    )

    label_column    = config.label_column if config.label_column in metadata.columns else None
    feature_columns = [c for c in schema.feature_columns if c in metadata.columns]
    absent = set(schema.feature_columns) - set(feature_columns)
    if absent:
        logger.warning("evaluation metadata lacks aggregates %s; they will be 0", sorted(absent))

    matrix = augment(
        counts, metadata, config.id_column, label_column, feature_columns,
        reserved=schema.reserved_names,
    )
    X = project(matrix, schema)
    y = matrix[label_column].astype(int) if label_column else None
    return X, y


def evaluate(y, proba, threshold):
    preds = (np.asarray(proba) >= threshold).astype(int)
    scores = {
        "accuracy":     accuracy_score(y, preds),
        "f1_not_liked": f1_score(y, preds, pos_label=0, zero_division=0),
        "f1_liked":     f1_score(y, preds, pos_label=1, zero_division=0),
    }
    # AUC is undefined when only one class is present
    scores["roc_auc"] = roc_auc_score(y, proba) if len(np.unique(y)) == 2 else float("nan")
    return scores


def run(config):
    """
    Full training run. Everything it reads and writes comes from `config`.

    Writes model.pkl, schema.json, predictions.parquet and, for a labelled
    evaluation split, metrics.csv into config.output_dir.
    """
    print("Loading data...")
    train_reviews, train_meta = load_reviews(
        config.train_path, config.id_column, config.text_column,
        config.label_column, config.metadata_path,
    )
    eval_reviews, eval_meta = load_reviews(
        config.eval_path, config.id_column, config.text_column,
        config.label_column, config.metadata_path,
    )
    print(f"  Train: {len(train_reviews):,}  Eval: {len(eval_reviews):,}")
    print("Class balance (train):")
    print(train_reviews[config.label_column].value_counts(normalize=True).to_string())

    print("\nBuilding class-conditional vocabularies...")
    matrix, schema = build_training_matrix(train_reviews, train_meta, config)
    X_train, y_train = split_features(matrix, schema)
    print(f"  Schema: {len(schema):,} columns "
          f"({len(schema.feature_columns)} aggregates, {len(schema.terms):,} terms)")

    print("Projecting evaluation reviews onto the training schema...")
    X_eval, y_eval = build_evaluation_matrix(eval_reviews, eval_meta, schema, config)
    print(f"  Eval matrix: {X_eval.shape[0]:,} rows × {X_eval.shape[1]:,} cols")

    print("\nTraining gradient-boosted trees...")
    model = BoostedTreeModel(threshold=config.classification_threshold, **config.model_params())
    model.fit(X_train, y_train, schema)

    proba = model.predict_proba(X_eval)
    predictions = pd.DataFrame(
        {"probability": proba, "prediction": (proba >= model.threshold).astype(int)},
        index=X_eval.index,
    )

    summary = {
        "n_train":   len(X_train),
        "n_eval":    len(X_eval),
        "n_columns": len(schema),
        "n_terms":   len(schema.terms),
        "threshold": model.threshold,
        "dropped_train_rows": sum(matrix.attrs.get("dropped_rows", {}).values()),
    }
    # hyper-parameters go into metrics.csv next to the scores
    summary.update(model.get_params())

    if y_eval is not None and len(y_eval):
        predictions[config.label_column] = y_eval
        summary.update(evaluate(y_eval, proba, model.threshold))

    out = config.output_dir
    save_artifacts(out, model, schema)
    write_table(predictions, out / "predictions.parquet")
    if "accuracy" in summary:
        pd.DataFrame([summary]).to_csv(out / "metrics.csv", index=False)

    summary["model"] = model
    return summary


def score_saved(artifacts_dir, reviews, metadata, config):
    """Score new reviews with a model and schema written by run()."""
    model, schema = load_artifacts(artifacts_dir)
    X, _  = build_evaluation_matrix(reviews, metadata, schema, config)
    proba = model.predict_proba(X)
    return pd.DataFrame(
        {"probability": proba, "prediction": (proba >= model.threshold).astype(int)},
        index=X.index,
    )
