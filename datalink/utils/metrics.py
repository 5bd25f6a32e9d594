"""
Metrics Collection and Calculation

This module provides utilities for tracking link performance: frames and
bytes sent and delivered, damaged frames, retransmissions and the derived
efficiency and goodput figures.
"""

from typing import Optional, Dict

from config import BIT_RATE


class LinkMetrics:
    """
    Collects and calculates link-layer metrics.

    Primary metric: Efficiency = Delivered Payload Bytes / Total Wire Bytes

    Attributes:
        start_time: Measurement start time
        end_time: Measurement end time
        bit_rate: Channel bit rate
    """

    def __init__(self, bit_rate: float = BIT_RATE):
        """
        Initialize metrics collector.

        Args:
            bit_rate: Channel bit rate in bps
        """
        self.bit_rate = bit_rate

        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        # Byte counters
        self.payload_bytes_sent = 0
        self.payload_bytes_delivered = 0
        self.wire_bytes_sent = 0

        # Frame counters
        self.data_frames_sent = 0
        self.data_frames_delivered = 0
        self.ack_frames_sent = 0
        self.ack_frames_received = 0
        self.retransmissions = 0
        self.duplicates = 0
        self.busy_rejections = 0

        # Error tracking
        self.frames_damaged = 0
        self.resyncs = 0

    def start(self, time: float):
        """Mark measurement start."""
        self.start_time = time

    def finish(self, time: float):
        """Mark measurement end."""
        self.end_time = time

    def record_data_sent(self, payload_bytes: int, wire_bytes: int, frames: int = 1):
        """
        Record data frame(s) sent.

        Args:
            payload_bytes: Original payload bytes
            wire_bytes: Bytes put on the wire including framing
            frames: Number of (sub-)frames the payload was framed into
        """
        self.payload_bytes_sent += payload_bytes
        self.wire_bytes_sent += wire_bytes
        self.data_frames_sent += frames

    def record_data_delivered(self, payload_bytes: int):
        """Record a payload delivered to the upper layer."""
        self.payload_bytes_delivered += payload_bytes
        self.data_frames_delivered += 1

    def record_retransmission(self, wire_bytes: int):
        """Record a timeout-driven resend."""
        self.retransmissions += 1
        self.wire_bytes_sent += wire_bytes

    def record_ack_sent(self, wire_bytes: int):
        """Record ACK frame sent."""
        self.ack_frames_sent += 1
        self.wire_bytes_sent += wire_bytes

    def record_ack_received(self):
        """Record ACK frame received."""
        self.ack_frames_received += 1

    def record_duplicate(self):
        """Record duplicate frame received."""
        self.duplicates += 1

    def record_busy(self):
        """Record send refused while waiting for an ACK."""
        self.busy_rejections += 1

    def record_frame_damaged(self):
        """Record damaged frame discarded."""
        self.frames_damaged += 1

    def record_resync(self):
        """Record resynchronization on an unexpected start tag."""
        self.resyncs += 1

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = Payload Bytes Delivered / Wire Bytes Sent

        Returns:
            Efficiency ratio (0-1)
        """
        if self.wire_bytes_sent <= 0:
            return 0.0
        return self.payload_bytes_delivered / self.wire_bytes_sent

    def calculate_goodput(self) -> float:
        """
        Calculate Goodput in bytes per second.

        Returns:
            Goodput, 0 if the measurement window is empty
        """
        if self.start_time is None or self.end_time is None:
            return 0.0

        total_time = self.end_time - self.start_time
        if total_time <= 0:
            return 0.0

        return self.payload_bytes_delivered / total_time

    def calculate_utilization(self) -> float:
        """
        Calculate channel utilization.

        Utilization = (Wire Bytes * 8) / (Bit Rate * Time)
        """
        if self.start_time is None or self.end_time is None:
            return 0.0

        total_time = self.end_time - self.start_time
        if total_time <= 0:
            return 0.0

        return (self.wire_bytes_sent * 8) / (self.bit_rate * total_time)

    def calculate_frame_error_rate(self) -> float:
        """
        Calculate frame error rate seen by the receiver.

        FER = Damaged Frames / (Damaged + Delivered + Duplicates)
        """
        total = self.frames_damaged + self.data_frames_delivered + self.duplicates
        if total <= 0:
            return 0.0
        return self.frames_damaged / total

    def calculate_retransmission_rate(self) -> float:
        """Retransmissions / Original Frames Sent."""
        if self.data_frames_sent <= 0:
            return 0.0
        return self.retransmissions / self.data_frames_sent

    def get_summary(self) -> Dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        total_time = 0.0
        if self.start_time is not None and self.end_time is not None:
            total_time = self.end_time - self.start_time

        return {
            'total_time': total_time,

            'efficiency': self.calculate_efficiency(),
            'goodput': self.calculate_goodput(),
            'utilization': self.calculate_utilization(),

            'payload_bytes_sent': self.payload_bytes_sent,
            'payload_bytes_delivered': self.payload_bytes_delivered,
            'wire_bytes_sent': self.wire_bytes_sent,

            'data_frames_sent': self.data_frames_sent,
            'data_frames_delivered': self.data_frames_delivered,
            'ack_frames_sent': self.ack_frames_sent,
            'ack_frames_received': self.ack_frames_received,
            'retransmissions': self.retransmissions,
            'duplicates': self.duplicates,
            'busy_rejections': self.busy_rejections,

            'frames_damaged': self.frames_damaged,
            'resyncs': self.resyncs,
            'frame_error_rate': self.calculate_frame_error_rate(),
            'retransmission_rate': self.calculate_retransmission_rate()
        }

    def to_csv_row(self) -> Dict:
        """Get metrics as a flat dictionary suitable for CSV export."""
        return dict(self.get_summary())

    def merge(self, other: 'LinkMetrics') -> 'LinkMetrics':
        """
        Combine the counters of two endpoints into a new collector.

        Args:
            other: Metrics of the other endpoint

        Returns:
            New collector with summed counters
        """
        merged = LinkMetrics(bit_rate=self.bit_rate)
        for name, value in vars(self).items():
            if name in ('bit_rate', 'start_time', 'end_time'):
                continue
            setattr(merged, name, value + getattr(other, name))
        merged.start_time = self.start_time
        merged.end_time = self.end_time
        return merged

    def reset(self):
        """Reset all metrics."""
        self.start_time = None
        self.end_time = None
        self.payload_bytes_sent = 0
        self.payload_bytes_delivered = 0
        self.wire_bytes_sent = 0
        self.data_frames_sent = 0
        self.data_frames_delivered = 0
        self.ack_frames_sent = 0
        self.ack_frames_received = 0
        self.retransmissions = 0
        self.duplicates = 0
        self.busy_rejections = 0
        self.frames_damaged = 0
        self.resyncs = 0
