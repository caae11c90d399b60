"""
Error Taxonomy

Configuration errors are detected before any optimization starts and abort
the run with no partial result. Numeric degeneracies and convergence
shortfalls are handled in place and never surface here.
"""


class VariogramFittingError(Exception):
    """Base class for all errors raised by the fitting engine."""


class ConfigurationError(VariogramFittingError, ValueError):
    """Invalid sizes, ratios, structure counts or crossover index."""
