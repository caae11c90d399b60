"""
Utilities - logging helpers shared by the fitting engine.
"""

from .logging import get_logger, configure_logging, log_performance

__all__ = [
    'get_logger',
    'configure_logging',
    'log_performance',
]
