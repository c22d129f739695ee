"""Errors raised by the tagger service.

Each error names the pipeline stage it belongs to so the command-line entry
point can report where a run failed. Errors only carry a message so they can
cross process-pool boundaries unchanged.
"""


class TaggerError(Exception):
    """Base class for all tagger failures."""

    stage = "tagger"


class ConfigError(TaggerError):
    """Raised when the tagger configuration is invalid."""

    stage = "config"


class VocabularyLoadError(TaggerError):
    """Raised when the tag vocabulary file is missing, unreadable or malformed."""

    stage = "vocabulary"


class EmptyVocabulary(TaggerError):
    """Raised when a matcher is requested for a vocabulary without entries."""

    stage = "matcher"


class TableReadError(TaggerError):
    """Raised when the source table is missing or cannot be decoded."""

    stage = "table"


class RowTextMissing(TaggerError):
    """Raised by a row accessor when the text field is null or not a string."""

    stage = "extract"


class RowIdentifierInvalid(TaggerError):
    """Raised by a row accessor when the identifier is not a 64-bit integer."""

    stage = "extract"


class OutputWriteError(TaggerError):
    """Raised when a result file cannot be written."""

    stage = "output"
