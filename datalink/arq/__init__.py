"""
ARQ package - Stop-and-wait protocol components.

Contains implementations for:
- Stop-and-wait controller (frame numbering, duplicates, resend)
- Retransmission timer
"""

from .stop_and_wait import StopAndWaitController, ArqState
from .timer import RetransmissionTimer, TimerState

__all__ = [
    'StopAndWaitController',
    'ArqState',
    'RetransmissionTimer',
    'TimerState'
]
