"""
Processing Errors
=================
Exceptions raised for invalid configuration or parameters.

Quality failures are not exceptions: they are reported as a
ProcessingStatus on the result.
"""


class StrongMotionError(Exception):
    """Base class for all package errors."""


class ConfigurationError(StrongMotionError, ValueError):
    """Invalid or unparsable configuration value."""


class FilterParameterError(StrongMotionError, ValueError):
    """Filter corners or roll-off cannot produce a stable filter."""
