"""
Exceptions raised while building and aligning review feature matrices.
"""


class ReviewVocabError(Exception):
    """Base class for every error raised by review_vocab."""


class ConfigError(ReviewVocabError):
    """Invalid configuration or malformed input table."""


class SchemaError(ReviewVocabError):
    """A term table or feature matrix cannot be assembled consistently."""


class SchemaMismatchError(SchemaError):
    """
    A model-facing matrix does not carry exactly the training schema.

    Projection is supposed to make this unreachable, so seeing it means
    something upstream skipped the projector.
    """

    def __init__(self, missing, extra, misordered=False):
        self.missing    = list(missing)
        self.extra      = list(extra)
        self.misordered = misordered
        parts = []
        if self.missing:
            parts.append(f"{len(self.missing)} missing (e.g. {self.missing[:5]})")
        if self.extra:
            parts.append(f"{len(self.extra)} unexpected (e.g. {self.extra[:5]})")
        if misordered and not parts:
            parts.append("columns out of schema order")
        super().__init__("matrix does not match training schema: " + "; ".join(parts))
