"""Error taxonomy for the digit classifier.

All failures raised here happen while loading or configuring a run; none of
them is retried.
"""


class DigitNetError(Exception):
    """Base class for all errors raised by the digit classifier."""


class ConfigurationError(DigitNetError, ValueError):
    """Malformed or missing settings, or mismatched tensor dimensions."""


class ParseError(DigitNetError, ValueError):
    """Corrupt or truncated serialized data (tensor text or IDX files)."""
