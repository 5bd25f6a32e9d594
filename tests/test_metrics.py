"""
Unit tests for link metrics.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datalink.utils.metrics import LinkMetrics


class TestLinkMetrics:
    """Tests for metric counters and derived figures."""

    def test_initial_values(self):
        """Test every derived figure is zero before anything happens."""
        metrics = LinkMetrics()

        assert metrics.calculate_efficiency() == 0.0
        assert metrics.calculate_goodput() == 0.0
        assert metrics.calculate_utilization() == 0.0
        assert metrics.calculate_frame_error_rate() == 0.0
        assert metrics.calculate_retransmission_rate() == 0.0

    def test_efficiency(self):
        """Test efficiency = delivered payload / wire bytes."""
        metrics = LinkMetrics()
        metrics.record_data_sent(payload_bytes=8, wire_bytes=12)
        metrics.record_retransmission(wire_bytes=12)
        metrics.record_ack_sent(wire_bytes=3)
        metrics.record_data_delivered(8)

        assert metrics.wire_bytes_sent == 27
        assert metrics.calculate_efficiency() == pytest.approx(8 / 27)
        assert metrics.calculate_retransmission_rate() == 1.0

    def test_goodput_and_utilization(self):
        """Test rates over the measurement window."""
        metrics = LinkMetrics(bit_rate=1000)
        metrics.start(1.0)
        metrics.record_data_sent(payload_bytes=50, wire_bytes=100)
        metrics.record_data_delivered(50)
        metrics.finish(3.0)

        assert metrics.calculate_goodput() == pytest.approx(25.0)
        assert metrics.calculate_utilization() == pytest.approx(0.4)

    def test_frame_error_rate(self):
        """Test FER counts damaged over all frames seen."""
        metrics = LinkMetrics()
        metrics.record_data_delivered(4)
        metrics.record_data_delivered(4)
        metrics.record_duplicate()
        metrics.record_frame_damaged()

        assert metrics.calculate_frame_error_rate() == pytest.approx(0.25)

    def test_sub_frames_counted(self):
        """Test one send can account for several sub-frames."""
        metrics = LinkMetrics()
        metrics.record_data_sent(payload_bytes=20, wire_bytes=30, frames=3)

        assert metrics.data_frames_sent == 3

    def test_merge(self):
        """Test merging sums counters and keeps the first window."""
        sender = LinkMetrics()
        sender.start(0.0)
        sender.finish(2.0)
        sender.record_data_sent(payload_bytes=10, wire_bytes=14)
        sender.record_ack_received()

        receiver = LinkMetrics()
        receiver.record_data_delivered(10)
        receiver.record_ack_sent(wire_bytes=3)

        merged = sender.merge(receiver)

        assert merged.wire_bytes_sent == 17
        assert merged.payload_bytes_delivered == 10
        assert merged.ack_frames_sent == 1
        assert merged.ack_frames_received == 1
        assert merged.get_summary()['total_time'] == 2.0
        assert merged.calculate_efficiency() == pytest.approx(10 / 17)

    def test_csv_row(self):
        """Test CSV row carries the headline figures."""
        metrics = LinkMetrics()
        metrics.record_busy()
        metrics.record_resync()

        row = metrics.to_csv_row()

        assert row['busy_rejections'] == 1
        assert row['resyncs'] == 1
        assert 'efficiency' in row
        assert 'frame_error_rate' in row

    def test_reset(self):
        """Test reset clears counters and window."""
        metrics = LinkMetrics()
        metrics.start(0.0)
        metrics.record_data_sent(payload_bytes=1, wire_bytes=4)
        metrics.record_frame_damaged()

        metrics.reset()

        assert metrics.start_time is None
        assert metrics.wire_bytes_sent == 0
        assert metrics.frames_damaged == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
