"""
Buffer Management

This module provides the receive buffer fed by the transport: an ordered
byte queue that grows at the back and is consumed from the front in bulk
as frames are recognized or discarded.
"""

from typing import Optional, Callable


class ReceiveBuffer:
    """
    Append-only, pop-front byte queue.

    The deframer walks the buffer with an explicit cursor and removes
    everything up to a position in one ``drain`` call instead of removing
    bytes while iterating.

    Attributes:
        capacity: Maximum number of buffered bytes (None = unbounded)
        data: Buffered bytes
    """

    def __init__(
        self,
        capacity: Optional[int] = None,
        on_overflow: Optional[Callable[[int], None]] = None
    ):
        """
        Initialize receive buffer.

        Args:
            capacity: Maximum buffered bytes; oldest bytes are dropped beyond it
            on_overflow: Callback receiving the number of bytes dropped
        """
        if capacity is not None and capacity <= 0:
            raise ValueError("capacity must be positive")

        self.capacity = capacity
        self.on_overflow = on_overflow
        self.data = bytearray()

        # Statistics
        self.total_bytes_received = 0
        self.total_bytes_drained = 0
        self.overflow_events = 0
        self.bytes_overflowed = 0

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index):
        return self.data[index]

    def __bool__(self) -> bool:
        return bool(self.data)

    @property
    def is_empty(self) -> bool:
        """Check if buffer is empty."""
        return len(self.data) == 0

    @property
    def fill_level(self) -> float:
        """Get buffer fill level (0-1), 0 when unbounded."""
        if not self.capacity:
            return 0.0
        return len(self.data) / self.capacity

    def extend(self, incoming: bytes):
        """
        Append raw incoming bytes.

        Args:
            incoming: Bytes from the transport
        """
        self.data.extend(incoming)
        self.total_bytes_received += len(incoming)

        if self.capacity is not None and len(self.data) > self.capacity:
            excess = len(self.data) - self.capacity
            del self.data[:excess]
            self.overflow_events += 1
            self.bytes_overflowed += excess
            if self.on_overflow:
                self.on_overflow(excess)

    def find(self, value: int, start: int = 0) -> int:
        """Index of the first occurrence of value at or after start, or -1."""
        return self.data.find(value, start)

    def peek(self, count: Optional[int] = None) -> bytes:
        """Return up to count leading bytes without consuming them."""
        if count is None:
            return bytes(self.data)
        return bytes(self.data[:count])

    def drain(self, count: int) -> bytes:
        """
        Remove and return the first count bytes.

        Args:
            count: Number of bytes to remove

        Returns:
            The removed bytes
        """
        count = min(count, len(self.data))
        removed = bytes(self.data[:count])
        del self.data[:count]
        self.total_bytes_drained += count
        return removed

    def clear(self) -> int:
        """Remove everything; returns the number of bytes removed."""
        return len(self.drain(len(self.data)))

    def get_statistics(self) -> dict:
        """Get buffer statistics."""
        return {
            'buffered_bytes': len(self.data),
            'total_bytes_received': self.total_bytes_received,
            'total_bytes_drained': self.total_bytes_drained,
            'overflow_events': self.overflow_events,
            'bytes_overflowed': self.bytes_overflowed
        }

    def reset(self):
        """Reset buffer to initial state."""
        self.data = bytearray()
        self.total_bytes_received = 0
        self.total_bytes_drained = 0
        self.overflow_events = 0
        self.bytes_overflowed = 0
