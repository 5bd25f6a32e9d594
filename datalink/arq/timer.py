"""
Retransmission Timer for Stop-and-Wait ARQ

This module provides the single retransmission timer guarding the one
outstanding frame. The timer is polled by the driving loop; it never
sleeps or runs on its own thread.
"""

from dataclasses import dataclass
from enum import Enum

from config import ARQ_TIMEOUT


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1
    EXPIRED = 2


@dataclass
class RetransmissionTimer:
    """
    Timer for the outstanding frame.

    Attributes:
        timeout: Timeout duration in seconds
        start_time: Time when timer was (re)started
        state: Current timer state
        retransmit_count: Number of restarts since the last start
    """
    timeout: float = ARQ_TIMEOUT
    start_time: float = 0.0
    state: TimerState = TimerState.STOPPED
    retransmit_count: int = 0

    def start(self, current_time: float):
        """
        Start the timer for a newly sent frame.

        Args:
            current_time: Current time
        """
        self.start_time = current_time
        self.state = TimerState.RUNNING
        self.retransmit_count = 0

    def stop(self):
        """Stop the timer."""
        self.state = TimerState.STOPPED

    def restart(self, current_time: float):
        """
        Restart the timer after a retransmission.

        Args:
            current_time: Current time
        """
        self.start_time = current_time
        self.state = TimerState.RUNNING
        self.retransmit_count += 1

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def check_expired(self, current_time: float) -> bool:
        """
        Check if more than the timeout has elapsed since the last start.

        Args:
            current_time: Current time

        Returns:
            True if timer has expired
        """
        if self.state != TimerState.RUNNING:
            return False

        if current_time - self.start_time > self.timeout:
            self.state = TimerState.EXPIRED
            return True

        return False

    def get_remaining_time(self, current_time: float) -> float:
        """
        Get remaining time until expiration.

        Args:
            current_time: Current time

        Returns:
            Remaining time in seconds (0 if expired or stopped)
        """
        if self.state != TimerState.RUNNING:
            return 0.0

        remaining = (self.start_time + self.timeout) - current_time
        return max(0.0, remaining)

    def get_expiry_time(self) -> float:
        """Get the absolute expiry time."""
        return self.start_time + self.timeout
