"""Utility modules for hidden_order.

This package contains the shared logging helpers.
"""

from hidden_order.utils.logging import get_logger, configure_logging, RichLogger

__all__ = [
    "get_logger",
    "configure_logging",
    "RichLogger",
]
