"""
Link Event Logger

This module provides the observability sink for the link layer: a leveled
console logger with categories, simulated-time stamps and convenience
methods invoked at the defined protocol events (frame delivered, frame
damaged, ack sent/received, timeout fired).
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from config import DEFAULT_LOG_LEVEL


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class LinkLogger:
    """
    Logger for link-layer events.

    Provides structured logging with timestamps and categories.

    Attributes:
        name: Logger name (usually the link endpoint)
        level: Minimum log level
        file: Optional file for logging
    """

    # Color codes for terminal output
    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
        LogLevel.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Link",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path for logging
            use_colors: Use ANSI colors in output
            include_timestamp: Include timestamps in log messages
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.file = open(log_file, 'w')

        # Simulation time tracking
        self.sim_time: Optional[float] = None

        # Message counts
        self.message_counts = {level: 0 for level in LogLevel}

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def set_level(self, level: int):
        """Set minimum log level."""
        self.level = level

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ) -> str:
        """Format a log message."""
        parts = []

        if self.include_timestamp:
            if self.sim_time is not None:
                parts.append(f"[{self.sim_time:10.6f}s]")
            else:
                parts.append(f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]")

        level_str = level.name.ljust(8)
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        parts.append(level_str)

        parts.append(f"[{self.name}]")

        if category:
            parts.append(f"[{category}]")

        parts.append(message)

        return " ".join(parts)

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ):
        """Log a message."""
        if level < self.level:
            return

        self.message_counts[level] += 1
        formatted = self._format_message(level, message, category)

        print(formatted)

        if self.file:
            # Strip color codes for file
            clean = formatted
            for color in self.COLORS.values():
                clean = clean.replace(color, '')
            clean = clean.replace(self.RESET, '')
            self.file.write(clean + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, category)

    def critical(self, message: str, category: Optional[str] = None):
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, category)

    # Convenience methods for link events
    def frame_sent(self, frame_num: Optional[int], size: int):
        """Log frame sent event."""
        label = f"Frame {frame_num}" if frame_num is not None else "Frame"
        self.debug(f"{label} sent, size={size}B", "TX")

    def frame_delivered(self, frame_num: Optional[int], size: int):
        """Log frame delivered to the upper layer."""
        label = f"Frame {frame_num}" if frame_num is not None else "Frame"
        self.debug(f"{label} delivered, {size}B", "RX")

    def frame_damaged(self, size: int, reason: str = "checksum mismatch"):
        """Log damaged frame discarded."""
        self.warning(f"Damaged frame discarded ({reason}), {size}B extracted", "RX")

    def resync(self, discarded: int):
        """Log resynchronization on an unexpected start tag."""
        self.warning(f"Start tag inside frame, {discarded}B discarded", "RESYNC")

    def ack_sent(self, expected_frame_num: Optional[int] = None):
        """Log ACK sent event."""
        suffix = f", expecting {expected_frame_num}" if expected_frame_num is not None else ""
        self.debug(f"ACK sent{suffix}", "ACK")

    def ack_received(self, next_frame_num: int):
        """Log ACK received event."""
        self.debug(f"ACK received, next frame {next_frame_num}", "ACK")

    def stray_ack(self):
        """Log ACK received while nothing is outstanding."""
        self.debug("ACK received with no frame outstanding, ignored", "ACK")

    def duplicate(self, frame_num: int, expected: int):
        """Log duplicate (unexpected frame number) received."""
        self.info(f"Unexpected frame number {frame_num} (expected {expected}), "
                  f"payload discarded", "DUP")

    def timeout(self, frame_num: int, retransmit_count: int):
        """Log timeout event."""
        self.warning(f"Timeout for frame {frame_num} (retx #{retransmit_count})", "TIMEOUT")

    def retransmit(self, frame_num: int):
        """Log retransmission event."""
        self.info(f"Retransmitting frame {frame_num}", "RETX")

    def busy(self):
        """Log send refused while waiting for an ACK."""
        self.debug("Send refused, waiting for ACK", "BUSY")

    def simulation_start(self, params: dict):
        """Log simulation start."""
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, metrics: dict):
        """Log simulation end."""
        self.info(f"Simulation ended: efficiency={metrics.get('efficiency', 0):.3f}", "SIM")

    def get_summary(self) -> dict:
        """Get logging summary."""
        return {
            'message_counts': dict(self.message_counts),
            'total_messages': sum(self.message_counts.values())
        }

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        """Cleanup on deletion."""
        self.close()


# Global logger instance
_global_logger: Optional[LinkLogger] = None


def get_logger() -> LinkLogger:
    """Get global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = LinkLogger()
    return _global_logger


def set_logger(logger: LinkLogger):
    """Set global logger instance."""
    global _global_logger
    _global_logger = logger
