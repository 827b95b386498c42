"""Error types for the recovery engine.

Data problems are expected conditions. They are raised close to where they
are detected and handled by callers as absence of input, never as failures
of the whole score.
"""


class MendError(Exception):
    """Base class for recovery engine errors."""


class NoMetricDataError(MendError):
    """Raised when a metric has neither a current value nor any samples.

    This is an expected condition. Callers omit the metric from aggregation
    instead of fabricating a score.
    """


class ProviderError(MendError):
    """Raised by a biometric or activity provider that could not deliver data.

    Authorization failures and unreachable platforms end up here. The engine
    reports them as missing input.
    """
