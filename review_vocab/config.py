"""
Defaults for the vocabulary pipeline.

Everything a run needs is carried on PipelineConfig and handed to the entry
point explicitly; nothing here reads the working directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from review_vocab.errors import ConfigError
from review_vocab.features.tokenizer import TokenizerConfig, check_sparsity

# Column names in the processed review tables
ID_COLUMN    = "review_id"
TEXT_COLUMN  = "review_text"
LABEL_COLUMN = "liked"

# Keep terms present in at least (1 - theta) of a class's reviews
DEFAULT_SPARSITY = 0.99

# Probability cut-off for predict(); tune it on a validation set, not here
CLASSIFICATION_THRESHOLD = 0.5

# XGBoost defaults
N_ESTIMATORS  = 300
MAX_DEPTH     = 6
LEARNING_RATE = 0.1
SEED          = 42


@dataclass
class PipelineConfig:
    train_path: Path
    eval_path: Path
    output_dir: Path
    metadata_path: Optional[Path] = None

    id_column: str    = ID_COLUMN
    text_column: str  = TEXT_COLUMN
    label_column: str = LABEL_COLUMN

    default_sparsity: float = DEFAULT_SPARSITY
    class_sparsity: Dict[int, float] = field(default_factory=dict)
    eval_sparsity: Optional[float] = None
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)

    classification_threshold: float = CLASSIFICATION_THRESHOLD

    n_estimators: int    = N_ESTIMATORS
    max_depth: int       = MAX_DEPTH
    learning_rate: float = LEARNING_RATE
    random_state: int    = SEED

    def __post_init__(self):
        self.train_path = Path(self.train_path)
        self.eval_path  = Path(self.eval_path)
        self.output_dir = Path(self.output_dir)
        if self.metadata_path is not None:
            self.metadata_path = Path(self.metadata_path)

        thetas = [self.default_sparsity, *self.class_sparsity.values()]
        if self.eval_sparsity is not None:
            thetas.append(self.eval_sparsity)
        for theta in thetas:
            check_sparsity(theta)
        if not 0.0 <= self.classification_threshold <= 1.0:
            raise ConfigError(
                f"classification threshold must lie in [0, 1], got {self.classification_threshold}"
            )

    def sparsity_for(self, label):
        """Threshold for one class, falling back to the default."""
        return self.class_sparsity.get(int(label), self.default_sparsity)

    def model_params(self):
        return {
            "n_estimators":  self.n_estimators,
            "max_depth":     self.max_depth,
            "learning_rate": self.learning_rate,
            "random_state":  self.random_state,
        }
