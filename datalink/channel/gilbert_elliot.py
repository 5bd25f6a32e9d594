"""
Gilbert-Elliott Burst Error Channel Model

This module implements the two-state Markov chain model used to damage
wire bytes between two link endpoints. The channel alternates between
a "Good" state (low BER) and a "Bad" state (high BER), so errors arrive
in bursts rather than independently.
"""

import numpy as np
from enum import Enum
from typing import Tuple, List, Optional

from config import (
    GOOD_STATE_BER, BAD_STATE_BER,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD,
    FRAME_LOSS_PROBABILITY, BITS_PER_BYTE
)


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


class GilbertElliottChannel:
    """
    Gilbert-Elliott two-state Markov channel model.

    The channel transitions between Good and Bad states after every bit.
    Each state has its own bit error rate (BER). Independently of bit
    errors, a whole transmission may be lost.

    Attributes:
        pg: Bit error rate in Good state
        pb: Bit error rate in Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        loss_probability: Probability a whole transmission is dropped
        state: Current channel state
        rng: Random number generator
    """

    def __init__(
        self,
        pg: float = GOOD_STATE_BER,
        pb: float = BAD_STATE_BER,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        loss_probability: float = FRAME_LOSS_PROBABILITY,
        seed: Optional[int] = None
    ):
        """
        Initialize the Gilbert-Elliott channel.

        Args:
            pg: Bit error rate in Good state (default from config)
            pb: Bit error rate in Bad state (default from config)
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            loss_probability: Probability of dropping a transmission
            seed: Random seed for reproducibility
        """
        self.pg = pg
        self.pb = pb
        self.p_gb = p_gb
        self.p_bg = p_bg
        self.loss_probability = loss_probability

        # Initialize RNG
        self.rng = np.random.default_rng(seed)

        # Start in steady-state (probabilistically)
        self._initialize_state()

        # Statistics tracking
        self.total_bits_transmitted = 0
        self.total_bit_errors = 0
        self.transmissions = 0
        self.transmissions_dropped = 0
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (π_Good, π_Bad)
        """
        sum_transitions = self.p_gb + self.p_bg
        if sum_transitions <= 0:
            return 1.0, 0.0
        pi_good = self.p_bg / sum_transitions
        pi_bad = self.p_gb / sum_transitions
        return pi_good, pi_bad

    def get_average_ber(self) -> float:
        """
        Calculate average BER based on steady-state probabilities.

        Returns:
            Average bit error rate
        """
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.pg + pi_bad * self.pb

    def get_current_ber(self) -> float:
        """Get the BER for the current channel state."""
        return self.pg if self.state == ChannelState.GOOD else self.pb

    def transition_state(self, draw: Optional[float] = None):
        """
        Perform a state transition based on transition probabilities.

        Args:
            draw: Uniform random draw to use (drawn from rng if None)
        """
        if draw is None:
            draw = self.rng.random()

        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if draw < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if draw < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def transmit_bit(self) -> bool:
        """
        Simulate transmission of a single bit through the channel.

        Returns:
            True if bit was corrupted (error), False if successful
        """
        error = self.rng.random() < self.get_current_ber()

        self.total_bits_transmitted += 1
        if error:
            self.total_bit_errors += 1

        # Transition state after each bit
        self.transition_state()

        return error

    def corrupt(self, data: bytes) -> Tuple[bytes, int]:
        """
        Pass bytes through the channel, flipping bits in error.

        Bits are sent most significant first; the state may change after
        every bit, so errors cluster while the channel is Bad.

        Args:
            data: Wire bytes

        Returns:
            Tuple of (received bytes, number_of_bit_errors)
        """
        num_bits = len(data) * BITS_PER_BYTE
        if num_bits == 0:
            return bytes(data), 0

        # Column 0 decides the error, column 1 the state transition
        draws = self.rng.random((num_bits, 2))

        received = bytearray(data)
        bit_errors = 0

        for bit_index in range(num_bits):
            if draws[bit_index, 0] < self.get_current_ber():
                byte_index, bit = divmod(bit_index, BITS_PER_BYTE)
                received[byte_index] ^= 0x80 >> bit
                bit_errors += 1

            self.transition_state(draws[bit_index, 1])

        self.total_bits_transmitted += num_bits
        self.total_bit_errors += bit_errors
        self.transmissions += 1
        return bytes(received), bit_errors

    def drop(self) -> bool:
        """
        Decide whether the next transmission is lost entirely.

        Returns:
            True if the transmission should be dropped
        """
        dropped = self.loss_probability > 0 and self.rng.random() < self.loss_probability
        if dropped:
            self.transmissions_dropped += 1
        return dropped

    def get_statistics(self) -> dict:
        """
        Get channel statistics.

        Returns:
            Dictionary with transmission statistics
        """
        total_time = self.time_in_good + self.time_in_bad

        return {
            'total_bits': self.total_bits_transmitted,
            'bit_errors': self.total_bit_errors,
            'observed_ber': (self.total_bit_errors / self.total_bits_transmitted
                             if self.total_bits_transmitted > 0 else 0),
            'transmissions': self.transmissions,
            'transmissions_dropped': self.transmissions_dropped,
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'fraction_in_good': (self.time_in_good / total_time
                                 if total_time > 0 else 0),
            'theoretical_avg_ber': self.get_average_ber()
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.total_bits_transmitted = 0
        self.total_bit_errors = 0
        self.transmissions = 0
        self.transmissions_dropped = 0
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self._initialize_state()
        self.reset_statistics()


# Utility functions
def simulate_burst_pattern(
    channel: GilbertElliottChannel,
    num_frames: int,
    frame_size_bytes: int
) -> List[bool]:
    """
    Pass multiple frames through the channel and return the error pattern.

    Args:
        channel: Gilbert-Elliott channel instance
        num_frames: Number of frames to simulate
        frame_size_bytes: Size of each frame in bytes

    Returns:
        List of booleans (True = frame corrupted)
    """
    frame = bytes(frame_size_bytes)
    error_pattern = []

    for _ in range(num_frames):
        _, bit_errors = channel.corrupt(frame)
        error_pattern.append(bit_errors > 0)

    return error_pattern


def analyze_burst_lengths(error_pattern: List[bool]) -> dict:
    """
    Analyze burst lengths in an error pattern.

    Args:
        error_pattern: List of frame error indicators

    Returns:
        Dictionary with burst statistics
    """
    if not error_pattern:
        return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}

    bursts = []
    current_burst = 0

    for error in error_pattern:
        if error:
            current_burst += 1
        elif current_burst > 0:
            bursts.append(current_burst)
            current_burst = 0

    if current_burst > 0:
        bursts.append(current_burst)

    if bursts:
        return {
            'avg_burst_length': np.mean(bursts),
            'max_burst_length': max(bursts),
            'num_bursts': len(bursts),
            'burst_lengths': bursts
        }
    return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}
