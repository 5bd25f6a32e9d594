"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Metrics calculation (efficiency, goodput, frame error rate)
- Receive buffer management
- Logging utilities
"""

from .metrics import LinkMetrics
from .buffer import ReceiveBuffer
from .logger import LinkLogger, LogLevel, get_logger, set_logger

__all__ = [
    'LinkMetrics',
    'ReceiveBuffer',
    'LinkLogger',
    'LogLevel',
    'get_logger',
    'set_logger'
]
