"""
Physical Layer Implementation

This module implements a unidirectional byte pipe between two link
endpoints: each transmission is delayed by its serialization time plus
propagation delay, passed through the Gilbert-Elliott channel and may be
lost entirely.
"""

from typing import Optional, List
from dataclasses import dataclass, field
import heapq

from config import BIT_RATE, PROPAGATION_DELAY, BITS_PER_BYTE
from datalink.channel.gilbert_elliot import GilbertElliottChannel, ChannelState


@dataclass(order=True)
class TransmissionEvent:
    """Event for bytes arriving at the far end."""
    arrival_time: float
    sequence: int
    data: bytes = field(compare=False)
    bit_errors: int = field(compare=False, default=0)


class PhysicalLayer:
    """
    Physical Layer Implementation.

    Simulates:
    - Bit rate / transmission time (one transmission on the line at a time)
    - Propagation delay
    - Gilbert-Elliott burst error channel
    - Whole-transmission loss

    Attributes:
        bit_rate: Channel bit rate in bps
        propagation_delay: Propagation delay in seconds
        channel: Gilbert-Elliott channel model
    """

    def __init__(
        self,
        bit_rate: float = BIT_RATE,
        propagation_delay: float = PROPAGATION_DELAY,
        channel: Optional[GilbertElliottChannel] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize physical layer.

        Args:
            bit_rate: Bit rate in bps
            propagation_delay: Propagation delay in seconds
            channel: Channel model (a default one is built if None)
            seed: Random seed for the default channel
        """
        self.bit_rate = bit_rate
        self.propagation_delay = propagation_delay
        self.channel = channel or GilbertElliottChannel(seed=seed)

        # Bytes in transit, ordered by arrival
        self.transit_queue: List[TransmissionEvent] = []
        self._sequence = 0

        # Time the line finishes serializing the previous transmission
        self.line_free_at = 0.0

        # Statistics
        self.transmissions = 0
        self.transmissions_corrupted = 0
        self.transmissions_dropped = 0
        self.bytes_transmitted = 0
        self.bytes_delivered = 0

    def calculate_transmission_time(self, num_bytes: int) -> float:
        """
        Calculate time to serialize bytes onto the line.

        Args:
            num_bytes: Number of bytes

        Returns:
            Transmission time in seconds
        """
        return (num_bytes * BITS_PER_BYTE) / self.bit_rate

    def transmit_bytes(self, data: bytes, current_time: float) -> Optional[float]:
        """
        Transmit raw bytes through the channel.

        Args:
            data: Bytes to transmit
            current_time: Current simulation time

        Returns:
            Arrival time, or None if the transmission was lost
        """
        start = max(current_time, self.line_free_at)
        self.line_free_at = start + self.calculate_transmission_time(len(data))

        self.transmissions += 1
        self.bytes_transmitted += len(data)

        if self.channel.drop():
            self.transmissions_dropped += 1
            return None

        received, bit_errors = self.channel.corrupt(data)
        if bit_errors:
            self.transmissions_corrupted += 1

        arrival_time = self.line_free_at + self.propagation_delay
        event = TransmissionEvent(
            arrival_time=arrival_time,
            sequence=self._sequence,
            data=received,
            bit_errors=bit_errors
        )
        self._sequence += 1
        heapq.heappush(self.transit_queue, event)

        return arrival_time

    def get_next_arrival_time(self) -> Optional[float]:
        """
        Get the time of the next arrival.

        Returns:
            Arrival time or None if nothing is in transit
        """
        if not self.transit_queue:
            return None
        return self.transit_queue[0].arrival_time

    def receive_all_arrived(self, current_time: float) -> List[bytes]:
        """
        Receive all byte chunks that have arrived by current time.

        Args:
            current_time: Current simulation time

        Returns:
            Arrived chunks in arrival order
        """
        arrived = []

        while self.transit_queue and self.transit_queue[0].arrival_time <= current_time:
            event = heapq.heappop(self.transit_queue)
            self.bytes_delivered += len(event.data)
            arrived.append(event.data)

        return arrived

    def has_bytes_in_transit(self) -> bool:
        """Check if anything is in transit."""
        return len(self.transit_queue) > 0

    def get_channel_state(self) -> ChannelState:
        """Get current channel state."""
        return self.channel.state

    def get_statistics(self) -> dict:
        """Get physical layer statistics."""
        return {
            'transmissions': self.transmissions,
            'transmissions_corrupted': self.transmissions_corrupted,
            'transmissions_dropped': self.transmissions_dropped,
            'bytes_transmitted': self.bytes_transmitted,
            'bytes_delivered': self.bytes_delivered,
            'in_transit': len(self.transit_queue),
            'channel': self.channel.get_statistics()
        }

    def reset(self, seed: Optional[int] = None):
        """Reset physical layer."""
        self.channel.reset(seed)
        self.transit_queue.clear()
        self._sequence = 0
        self.line_free_at = 0.0
        self.transmissions = 0
        self.transmissions_corrupted = 0
        self.transmissions_dropped = 0
        self.bytes_transmitted = 0
        self.bytes_delivered = 0
