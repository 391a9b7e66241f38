"""
Exception taxonomy.

ConfigurationError covers invalid priors and sampler settings and aborts
whatever uses them. DataError covers malformed read counts; in batch mode it
is reported per mutation without stopping the others.
"""


class CHIPbfError(Exception):
    """Base class for all package errors."""


class ConfigurationError(CHIPbfError, ValueError):
    """Non-positive draw count, weight outside [0, 1] or bad Beta shapes."""


class DataError(CHIPbfError, ValueError):
    """Negative counts, mutant reads above depth, or zero coverage."""
