"""
Unit tests for the Gilbert-Elliot channel model and the physical layer.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datalink.channel.gilbert_elliot import (
    GilbertElliottChannel, ChannelState,
    simulate_burst_pattern, analyze_burst_lengths
)
from datalink.layers.physical_layer import PhysicalLayer


def popcount_diff(a: bytes, b: bytes) -> int:
    return sum(bin(x ^ y).count('1') for x, y in zip(a, b))


class TestGilbertElliottChannel:
    """Tests for Gilbert-Elliot channel model."""

    def test_initialization(self):
        """Test channel initialization with default parameters."""
        channel = GilbertElliottChannel(seed=42)

        assert channel.pg == 1e-6
        assert channel.pb == 5e-3
        assert channel.p_gb == 0.002
        assert channel.p_bg == 0.05
        assert channel.loss_probability == 0.01
        assert channel.state in [ChannelState.GOOD, ChannelState.BAD]

    def test_steady_state_probabilities(self):
        """Test steady-state probability calculation."""
        channel = GilbertElliottChannel()

        pi_good, pi_bad = channel.get_steady_state_probabilities()

        # Should sum to 1
        assert abs(pi_good + pi_bad - 1.0) < 1e-10

        # Expected values: pi_good ≈ 0.962, pi_bad ≈ 0.038
        assert 0.95 < pi_good < 0.98
        assert 0.02 < pi_bad < 0.05

    def test_average_ber(self):
        """Test average BER calculation."""
        channel = GilbertElliottChannel()

        avg_ber = channel.get_average_ber()

        assert 5e-5 < avg_ber < 5e-4

    def test_single_bit_transmission(self):
        """Test single bit transmission."""
        channel = GilbertElliottChannel(seed=42)

        errors = sum(channel.transmit_bit() for _ in range(10000))

        assert 0 <= errors / 10000 < 0.01

    def test_corrupt_preserves_length(self):
        """Test corruption flips bits but never adds or removes bytes."""
        channel = GilbertElliottChannel(pg=0.05, pb=0.2, seed=7)
        data = bytes(range(64))

        received, bit_errors = channel.corrupt(data)

        assert len(received) == len(data)
        assert bit_errors == popcount_diff(data, received)
        assert bit_errors > 0

    def test_clean_channel(self):
        """Test zero BER leaves data untouched."""
        channel = GilbertElliottChannel(pg=0.0, pb=0.0, seed=1)

        received, bit_errors = channel.corrupt(b'{clean}')

        assert received == b'{clean}'
        assert bit_errors == 0

    def test_every_bit_flipped(self):
        """Test BER of one inverts every bit."""
        channel = GilbertElliottChannel(pg=1.0, pb=1.0, seed=1)

        received, bit_errors = channel.corrupt(b'\x00\x0f')

        assert received == b'\xff\xf0'
        assert bit_errors == 16

    def test_empty_input(self):
        """Test empty input passes through."""
        channel = GilbertElliottChannel(seed=1)

        assert channel.corrupt(b'') == (b'', 0)

    def test_drop(self):
        """Test loss probability extremes."""
        never = GilbertElliottChannel(loss_probability=0.0, seed=1)
        always = GilbertElliottChannel(loss_probability=1.0, seed=1)

        assert not any(never.drop() for _ in range(100))
        assert all(always.drop() for _ in range(100))
        assert always.get_statistics()['transmissions_dropped'] == 100

    def test_state_transitions(self):
        """Test that state transitions occur."""
        channel = GilbertElliottChannel(seed=42)

        states_seen = set()
        for _ in range(1000):
            channel.transition_state()
            states_seen.add(channel.state)

        assert len(states_seen) == 2

    def test_burst_pattern_simulation(self):
        """Test burst pattern simulation."""
        channel = GilbertElliottChannel(seed=42)

        error_pattern = simulate_burst_pattern(channel, 100, 64)

        assert len(error_pattern) == 100
        assert all(isinstance(e, bool) for e in error_pattern)

    def test_burst_analysis(self):
        """Test burst length analysis."""
        pattern = [False, False, True, True, True, False, True, False]

        stats = analyze_burst_lengths(pattern)

        assert stats['num_bursts'] == 2
        assert stats['max_burst_length'] == 3

    def test_reset(self):
        """Test channel reset."""
        channel = GilbertElliottChannel(seed=42)

        for _ in range(20):
            channel.corrupt(bytes(64))

        channel.reset(seed=123)

        stats = channel.get_statistics()
        assert stats['total_bits'] == 0
        assert stats['bit_errors'] == 0

    def test_reproducibility(self):
        """Test that same seed produces same results."""
        channel1 = GilbertElliottChannel(pb=0.1, seed=42)
        channel2 = GilbertElliottChannel(pb=0.1, seed=42)

        results1 = [channel1.corrupt(bytes(64)) for _ in range(10)]
        results2 = [channel2.corrupt(bytes(64)) for _ in range(10)]

        assert results1 == results2


class TestPhysicalLayer:
    """Tests for the delayed byte pipe."""

    def make_phy(self, loss: float = 0.0) -> PhysicalLayer:
        channel = GilbertElliottChannel(pg=0.0, pb=0.0, loss_probability=loss, seed=1)
        return PhysicalLayer(bit_rate=8000, propagation_delay=0.01, channel=channel)

    def test_arrival_time(self):
        """Test arrival = serialization time + propagation delay."""
        phy = self.make_phy()

        arrival = phy.transmit_bytes(b'abcd', 0.0)

        # 32 bits at 8 kbps = 4 ms
        assert arrival == pytest.approx(0.014)
        assert phy.receive_all_arrived(0.013) == []
        assert phy.receive_all_arrived(arrival) == [b'abcd']
        assert not phy.has_bytes_in_transit()

    def test_line_serializes_transmissions(self):
        """Test back-to-back transmissions queue on the line."""
        phy = self.make_phy()

        first = phy.transmit_bytes(b'abcd', 0.0)
        second = phy.transmit_bytes(b'efgh', 0.0)

        assert second == pytest.approx(first + 0.004)
        assert phy.receive_all_arrived(1.0) == [b'abcd', b'efgh']

    def test_lost_transmission(self):
        """Test a dropped transmission never arrives."""
        phy = self.make_phy(loss=1.0)

        assert phy.transmit_bytes(b'gone', 0.0) is None
        assert phy.receive_all_arrived(10.0) == []
        assert phy.get_statistics()['transmissions_dropped'] == 1

    def test_reset(self):
        """Test reset clears transit queue and counters."""
        phy = self.make_phy()
        phy.transmit_bytes(b'abcd', 0.0)

        phy.reset()

        assert not phy.has_bytes_in_transit()
        assert phy.get_statistics()['transmissions'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
