"""
quotesmith.exceptions - Custom exception classes.

All Quotesmith-specific exceptions inherit from QuotesmithError.
"""


class QuotesmithError(Exception):
    """Base exception for all Quotesmith errors."""

    pass


class ConfigError(QuotesmithError):
    """Configuration loading or validation error."""

    pass


class ValidationFault(QuotesmithError):
    """Bad input shape: non-video file, no media and no topic, over-long video."""

    pass


class MediaProbeError(QuotesmithError):
    """Could not read media metadata."""

    pass


class GenerationBusyError(QuotesmithError):
    """A generation is already in flight."""

    pass


class GenerationError(QuotesmithError):
    """Remote generation call failed."""

    pass


class TransientError(GenerationError):
    """Network or server-side failure that may succeed on retry."""

    pass


class FatalError(GenerationError):
    """Auth, validation, empty or malformed response. Never retried."""

    pass
