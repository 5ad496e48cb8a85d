"""
Train gradient-boosted trees on class-conditional review vocabularies.

    python -m review_vocab.experiments.train_xgb \
        --train data/processed/train.parquet \
        --eval  data/processed/test.parquet \
        --out   results/xgb

Per-class sparsity lets the minority (not-liked) class keep vocabulary a
corpus-wide threshold would prune:

    ... --sparsity 0.99 --class-sparsity 0=0.995
"""

import argparse
import logging
import sys

from review_vocab import config as defaults
from review_vocab.config import PipelineConfig
from review_vocab.errors import ReviewVocabError
from review_vocab.experiments.pipeline import run
from review_vocab.features.tokenizer import TokenizerConfig


def parse_class_sparsity(values):
    """['0=0.995', '1=0.99'] -> {0: 0.995, 1: 0.99}"""
    out = {}
    for item in values or []:
        label, sep, theta = item.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"expected LABEL=THETA, got '{item}'")
        out[int(label)] = float(theta)
    return out


def build_parser():
    parser = argparse.ArgumentParser(description="Class-conditional vocabulary + XGBoost")
    parser.add_argument("--train", required=True, help="Training reviews (parquet/csv/jsonl)")
    parser.add_argument("--eval", required=True, help="Evaluation reviews (parquet/csv/jsonl)")
    parser.add_argument("--out", required=True, help="Directory for model, schema and predictions")
    parser.add_argument("--metadata", default=None, help="Optional aggregate feature table")

    parser.add_argument("--id-column", default=defaults.ID_COLUMN)
    parser.add_argument("--text-column", default=defaults.TEXT_COLUMN)
    parser.add_argument("--label-column", default=defaults.LABEL_COLUMN)

    parser.add_argument("--sparsity", type=float, default=defaults.DEFAULT_SPARSITY,
                        help="Keep terms in at least (1 - sparsity) of a class's reviews")
    parser.add_argument("--class-sparsity", action="append", metavar="LABEL=THETA",
                        help="Per-class override, repeatable")
    parser.add_argument("--eval-sparsity", type=float, default=None,
                        help="Optional sparsity filter on the evaluation vocabulary")

    parser.add_argument("--language", default="english")
    parser.add_argument("--keep-stopwords", action="store_true")
    parser.add_argument("--keep-numbers", action="store_true")
    parser.add_argument("--stem", action="store_true", help="Snowball-stem every term")

    parser.add_argument("--threshold", type=float, default=defaults.CLASSIFICATION_THRESHOLD,
                        help="Probability cut-off for the liked class")
    parser.add_argument("--n-estimators", type=int, default=defaults.N_ESTIMATORS)
    parser.add_argument("--max-depth", type=int, default=defaults.MAX_DEPTH)
    parser.add_argument("--learning-rate", type=float, default=defaults.LEARNING_RATE)
    parser.add_argument("--seed", type=int, default=defaults.SEED)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def config_from_args(args):
    tokenizer = TokenizerConfig(
        language=args.language,
        remove_stopwords=not args.keep_stopwords,
        remove_numbers=not args.keep_numbers,
        stem_words=args.stem,
    )
    return PipelineConfig(
        train_path=args.train,
        eval_path=args.eval,
        output_dir=args.out,
        metadata_path=args.metadata,
        id_column=args.id_column,
        text_column=args.text_column,
        label_column=args.label_column,
        default_sparsity=args.sparsity,
        class_sparsity=parse_class_sparsity(args.class_sparsity),
        eval_sparsity=args.eval_sparsity,
        tokenizer=tokenizer,
        classification_threshold=args.threshold,
        n_estimators=args.n_estimators,
        max_depth=args.max_depth,
        learning_rate=args.learning_rate,
        random_state=args.seed,
    )


def main(argv=None):
    parser = build_parser()
    args   = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config  = config_from_args(args)
        summary = run(config)
    except (ReviewVocabError, argparse.ArgumentTypeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"\n{'='*50}")
    print("RESULTS")
    print(f"{'='*50}")
    print(f"  Train rows:  {summary['n_train']:,}")
    print(f"  Eval rows:   {summary['n_eval']:,}")
    print(f"  Columns:     {summary['n_columns']:,}  ({summary['n_terms']:,} terms)")
    print(f"  Threshold:   {summary['threshold']:.2f}")
    if "accuracy" in summary:
        print(f"  Accuracy:    {summary['accuracy']:.4f}")
        print(f"  F1(not-liked): {summary['f1_not_liked']:.4f}")
        print(f"  F1(liked):   {summary['f1_liked']:.4f}")
        print(f"  ROC AUC:     {summary['roc_auc']:.4f}")

    print("\nTop 15 features:")
    for name, importance in summary["model"].top_features(n=15):
        print(f"  {name:<25} importance={importance:.4f}")

    print(f"\n✓ Saved to {config.output_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
