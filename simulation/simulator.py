"""
Link Simulator - Two Endpoints over a Burst-Error Channel

This module wires a sending and a receiving DataLinkLayer together through
forward and reverse physical layers, drives both endpoints on a simulated
clock and verifies that the bytes delivered match the bytes sent.
"""

from typing import Optional, Dict, List
from dataclasses import dataclass, asdict
import time

import numpy as np

from config import (
    DEFAULT_CHECKSUM, MAX_FRAME_SIZE, ARQ_TIMEOUT,
    BIT_RATE, PROPAGATION_DELAY, FRAME_LOSS_PROBABILITY,
    GOOD_STATE_BER, BAD_STATE_BER, P_GOOD_TO_BAD, P_BAD_TO_GOOD,
    SIMULATION_TICK, MESSAGE_SIZE, DATA_SIZE, MAX_SIMULATION_TIME
)
from datalink.channel.gilbert_elliot import GilbertElliottChannel
from datalink.framing.tags import LinkConfig, ChecksumKind
from datalink.layers.link_layer import DataLinkLayer
from datalink.layers.physical_layer import PhysicalLayer
from datalink.utils.logger import LinkLogger, LogLevel


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # Link parameters
    checksum_kind: str = DEFAULT_CHECKSUM
    max_frame_size: int = MAX_FRAME_SIZE
    arq_enabled: bool = True
    arq_timeout: float = ARQ_TIMEOUT

    # Channel parameters
    good_state_ber: float = GOOD_STATE_BER
    bad_state_ber: float = BAD_STATE_BER
    p_good_to_bad: float = P_GOOD_TO_BAD
    p_bad_to_good: float = P_BAD_TO_GOOD
    loss_probability: float = FRAME_LOSS_PROBABILITY
    bit_rate: float = BIT_RATE
    propagation_delay: float = PROPAGATION_DELAY

    # Data parameters
    message_size: int = MESSAGE_SIZE
    data_size: int = DATA_SIZE

    # Simulation parameters
    tick: float = SIMULATION_TICK
    seed: int = 42
    max_time: float = MAX_SIMULATION_TIME
    log_level: int = LogLevel.WARNING

    def to_link_config(self) -> LinkConfig:
        """Build the link configuration shared by both endpoints."""
        return LinkConfig(
            max_frame_size=self.max_frame_size,
            checksum_kind=ChecksumKind(self.checksum_kind),
            arq_timeout=self.arq_timeout,
            arq_enabled=self.arq_enabled
        )


def generate_test_data(size: int, seed: int) -> bytes:
    """
    Generate reproducible random test data covering every byte value.

    Args:
        size: Number of bytes
        seed: Random seed

    Returns:
        Test data
    """
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=size, dtype=np.uint8).tobytes()


def verify_data(sent: bytes, received: bytes) -> Dict:
    """
    Compare delivered bytes against sent bytes.

    Returns:
        Dictionary with 'valid' flag and mismatch details
    """
    first_mismatch = None
    for index, (a, b) in enumerate(zip(sent, received)):
        if a != b:
            first_mismatch = index
            break
    if first_mismatch is None and len(sent) != len(received):
        first_mismatch = min(len(sent), len(received))

    return {
        'valid': first_mismatch is None,
        'sent_bytes': len(sent),
        'received_bytes': len(received),
        'first_mismatch': first_mismatch
    }


class LinkSimulator:
    """
    Tick-driven simulator for one data link.

    The sender queues the test data in messages of ``message_size`` bytes;
    both endpoints run one driving-loop iteration per tick. Idle stretches
    are skipped up to the next arrival or timer expiry.
    """

    def __init__(self, config: SimulatorConfig):
        """Initialize simulator."""
        self.config = config
        self.link_config = config.to_link_config()

        self.current_time = 0.0

        self.forward = PhysicalLayer(
            bit_rate=config.bit_rate,
            propagation_delay=config.propagation_delay,
            channel=self._make_channel(config.seed)
        )
        self.reverse = PhysicalLayer(
            bit_rate=config.bit_rate,
            propagation_delay=config.propagation_delay,
            channel=self._make_channel(config.seed + 1000)
        )

        self.sender_logger = LinkLogger(name="Sender", level=config.log_level)
        self.receiver_logger = LinkLogger(name="Receiver", level=config.log_level)

        self.sender = DataLinkLayer(
            self.link_config,
            transmit=lambda data: self.forward.transmit_bytes(data, self.current_time),
            logger=self.sender_logger,
            clock=self._clock
        )
        self.receiver = DataLinkLayer(
            self.link_config,
            transmit=lambda data: self.reverse.transmit_bytes(data, self.current_time),
            on_receive=self._on_data_delivered,
            logger=self.receiver_logger,
            clock=self._clock
        )

        self.sent_data = b''
        self.received_data = bytearray()
        self.iterations = 0

    def _make_channel(self, seed: int) -> GilbertElliottChannel:
        return GilbertElliottChannel(
            pg=self.config.good_state_ber,
            pb=self.config.bad_state_ber,
            p_gb=self.config.p_good_to_bad,
            p_bg=self.config.p_bad_to_good,
            loss_probability=self.config.loss_probability,
            seed=seed
        )

    def _clock(self) -> float:
        return self.current_time

    def _on_data_delivered(self, payload: bytes):
        self.received_data.extend(payload)

    def _setup_data(self, data: bytes):
        """Split data into messages and queue them at the sender."""
        self.sent_data = data
        self.received_data = bytearray()

        size = self.config.message_size
        for offset in range(0, len(data), size):
            self.sender.queue_send(data[offset:offset + size])

        self.sender_logger.info(
            f"Data setup: {len(data)} bytes, {len(self.sender.send_queue)} messages",
            "SETUP"
        )

    def _is_complete(self) -> bool:
        """Everything sent is acknowledged (ARQ) or has left the forward pipe."""
        if not self.sender.is_idle:
            return False
        if self.link_config.arq_enabled:
            return True
        return not self.forward.has_bytes_in_transit()

    def _next_time(self) -> float:
        """Advance one tick, or jump ahead to the next thing that can happen."""
        candidates: List[float] = []

        for phy in (self.forward, self.reverse):
            arrival = phy.get_next_arrival_time()
            if arrival is not None:
                candidates.append(arrival)

        arq = self.sender.arq
        if arq is not None and arq.timer.is_running:
            candidates.append(arq.timer.get_expiry_time() + self.config.tick)

        next_tick = self.current_time + self.config.tick
        if not candidates:
            return next_tick
        return max(next_tick, min(candidates))

    def step(self):
        """Run one driving-loop iteration of both endpoints."""
        self.sender_logger.set_sim_time(self.current_time)
        self.receiver_logger.set_sim_time(self.current_time)

        for chunk in self.forward.receive_all_arrived(self.current_time):
            self.receiver.receive_bytes(chunk)
        for chunk in self.reverse.receive_all_arrived(self.current_time):
            self.sender.receive_bytes(chunk)

        self.sender.process()
        self.receiver.process()
        self.iterations += 1

    def run(self, data: Optional[bytes] = None) -> Dict:
        """Run the simulation."""
        if data is None:
            data = generate_test_data(self.config.data_size, self.config.seed)

        self.current_time = 0.0
        self.iterations = 0
        self._setup_data(data)

        for endpoint in (self.sender, self.receiver):
            endpoint.metrics.start(0.0)

        self.sender_logger.simulation_start({
            'checksum': self.config.checksum_kind,
            'max_frame_size': self.config.max_frame_size,
            'arq': self.config.arq_enabled,
            'bad_state_ber': self.config.bad_state_ber,
            'seed': self.config.seed
        })
        sim_start_real = time.time()

        while self.current_time < self.config.max_time:
            self.step()
            if self._is_complete():
                break
            self.current_time = self._next_time()

        for endpoint in (self.sender, self.receiver):
            endpoint.metrics.finish(self.current_time)
        sim_end_real = time.time()

        metrics = self.sender.metrics.merge(self.receiver.metrics)
        metrics_summary = metrics.get_summary()
        verification = verify_data(self.sent_data, bytes(self.received_data))

        self.sender_logger.simulation_end(metrics_summary)

        return {
            'config': asdict(self.config),
            'metrics': metrics_summary,
            'verification': verification,
            'sender': self.sender.get_statistics(),
            'receiver': self.receiver.get_statistics(),
            'forward_channel': self.forward.get_statistics(),
            'reverse_channel': self.reverse.get_statistics(),
            'iterations': self.iterations,
            'real_time': sim_end_real - sim_start_real,
            'simulation_time': self.current_time,
            'complete': self._is_complete()
        }
