"""
Data-Link Layer

This module composes the framer, deframer, receive buffer and optional
stop-and-wait controller into one link endpoint. The endpoint is driven
cooperatively: bytes are pushed in with ``receive_bytes`` and the owner
calls ``process`` periodically to deliver frames, acknowledge them and
resend on timeout.
"""

from collections import deque
from typing import Optional, List, Callable, Deque
import threading
import time

from datalink.arq.stop_and_wait import StopAndWaitController, ArqState
from datalink.framing.checksum import make_checksum
from datalink.framing.deframer import Deframer, DecodedFrame
from datalink.framing.framer import Framer
from datalink.framing.tags import LinkConfig
from datalink.utils.buffer import ReceiveBuffer
from datalink.utils.logger import LinkLogger, get_logger
from datalink.utils.metrics import LinkMetrics


class DataLinkLayer:
    """
    One endpoint of a byte-stuffed data link.

    Without ARQ every valid frame is delivered and nothing is acknowledged.
    With ARQ one frame is outstanding at a time, every valid data frame is
    acknowledged and duplicates are suppressed.

    Attributes:
        config: Link configuration
        framer: Outbound framer
        deframer: Inbound deframer
        arq: Stop-and-wait controller (None without ARQ)
        receive_buffer: Raw inbound bytes not yet consumed
        metrics: Link metrics
    """

    def __init__(
        self,
        config: LinkConfig,
        transmit: Callable[[bytes], None],
        on_receive: Optional[Callable[[bytes], None]] = None,
        logger: Optional[LinkLogger] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize link layer.

        Args:
            config: Link configuration
            transmit: Called with wire bytes to put on the physical layer
            on_receive: Callback when a payload is delivered upward
            logger: Event sink (global logger if None)
            clock: Returns the current time (time.monotonic if None)
        """
        self.config = config
        self.transmit = transmit
        self.on_receive = on_receive
        self.logger = logger or get_logger()
        self.clock = clock or time.monotonic

        checksum = make_checksum(config)
        self.framer = Framer(config, checksum)
        self.deframer = Deframer(config, checksum, self.logger)

        self.arq: Optional[StopAndWaitController] = None
        if config.arq_enabled:
            self.arq = StopAndWaitController(timeout=config.arq_timeout)

        self.receive_buffer = ReceiveBuffer()
        self.send_queue: Deque[bytes] = deque()
        self.metrics = LinkMetrics()

        # Guards receive buffer, send queue and ARQ state
        self._lock = threading.RLock()

    @property
    def state(self) -> ArqState:
        """Sender state (always IDLE without ARQ)."""
        if self.arq is None:
            return ArqState.IDLE
        return self.arq.state

    @property
    def is_idle(self) -> bool:
        """True when nothing is queued or awaiting acknowledgment."""
        with self._lock:
            return not self.send_queue and self.state == ArqState.IDLE

    def send(self, payload: bytes) -> bool:
        """
        Frame and transmit a payload.

        Args:
            payload: Raw payload bytes

        Returns:
            True if transmitted, False if refused because a frame is still
            awaiting acknowledgment
        """
        _check_payload(payload)

        with self._lock:
            frame_num = None
            if self.arq is not None:
                if not self.arq.can_send():
                    self.arq.reject_busy()
                    self.metrics.record_busy()
                    self.logger.busy()
                    return False
                frame_num = self.arq.send_frame_num

            frames_before = self.framer.frames_created
            wire = self.framer.frame(payload, frame_num)
            frames = self.framer.frames_created - frames_before

            if self.arq is not None:
                self.arq.prepare_send(self.clock(), wire)

            self.transmit(wire)
            self.metrics.record_data_sent(len(payload), len(wire), frames)
            self.logger.frame_sent(frame_num, len(wire))
            return True

    def queue_send(self, payload: bytes):
        """
        Queue a payload to be sent by ``process`` once the link is idle.

        Args:
            payload: Raw payload bytes
        """
        _check_payload(payload)
        with self._lock:
            self.send_queue.append(bytes(payload))

    def receive_bytes(self, data: bytes):
        """Append raw bytes from the physical layer to the receive buffer."""
        with self._lock:
            self.receive_buffer.extend(data)

    def process_receive(self) -> List[bytes]:
        """
        Consume the receive buffer until no further frame can be extracted.

        Returns:
            Payloads delivered to the upper layer, in order
        """
        delivered = []

        with self._lock:
            while True:
                damaged_before = self.deframer.frames_damaged
                resyncs_before = self.deframer.resyncs

                frame = self.deframer.extract(self.receive_buffer)

                for _ in range(self.deframer.frames_damaged - damaged_before):
                    self.metrics.record_frame_damaged()
                for _ in range(self.deframer.resyncs - resyncs_before):
                    self.metrics.record_resync()

                if frame is None:
                    break

                if frame.is_ack:
                    self._handle_ack()
                elif self._handle_data(frame):
                    delivered.append(frame.payload)

        return delivered

    def check_timeout(self) -> bool:
        """
        Resend the outstanding frame if its timer has expired.

        Returns:
            True if a retransmission was made
        """
        if self.arq is None:
            return False

        with self._lock:
            frame_num = self.arq.send_frame_num
            wire = self.arq.on_timer_tick(self.clock())
            if wire is None:
                return False

            self.logger.timeout(frame_num, self.arq.timer.retransmit_count)
            self.transmit(wire)
            self.metrics.record_retransmission(len(wire))
            self.logger.retransmit(frame_num)
            return True

    def process(self) -> List[bytes]:
        """
        Run one iteration of the driving loop.

        Processes received bytes, checks the retransmission timer, then
        sends queued payloads while the link is idle.

        Returns:
            Payloads delivered during this iteration
        """
        with self._lock:
            delivered = self.process_receive()
            self.check_timeout()

            while self.send_queue and self.state == ArqState.IDLE:
                self.send(self.send_queue.popleft())

            return delivered

    def _handle_ack(self):
        if self.arq is None:
            return

        if self.arq.on_ack_received():
            self.metrics.record_ack_received()
            self.logger.ack_received(self.arq.send_frame_num)
        else:
            self.logger.stray_ack()

    def _handle_data(self, frame: DecodedFrame) -> bool:
        """Deliver and acknowledge a data frame; False if suppressed."""
        deliver = True

        if self.arq is not None:
            expected = self.arq.expected_receive_frame_num
            deliver = self.arq.on_data_frame(frame.frame_num)
            if not deliver:
                self.metrics.record_duplicate()
                self.logger.duplicate(frame.frame_num, expected)

            # Duplicates are acknowledged too: the earlier ACK was lost
            ack = self.framer.ack_frame()
            self.transmit(ack)
            self.metrics.record_ack_sent(len(ack))
            self.logger.ack_sent(self.arq.expected_receive_frame_num)

        if deliver:
            self.metrics.record_data_delivered(len(frame.payload))
            self.logger.frame_delivered(frame.frame_num, len(frame.payload))
            if self.on_receive:
                self.on_receive(frame.payload)

        return deliver

    def get_statistics(self) -> dict:
        """Get link layer statistics."""
        with self._lock:
            stats = {
                'state': self.state.name,
                'queued': len(self.send_queue),
                'framer': self.framer.get_statistics(),
                'deframer': self.deframer.get_statistics(),
                'receive_buffer': self.receive_buffer.get_statistics(),
                'metrics': self.metrics.get_summary()
            }
            if self.arq is not None:
                stats['arq'] = self.arq.get_statistics()
            return stats

    def reset(self):
        """Reset endpoint to link startup state."""
        with self._lock:
            self.receive_buffer.clear()
            self.receive_buffer.reset()
            self.send_queue.clear()
            self.deframer.reset()
            self.metrics.reset()
            if self.arq is not None:
                self.arq.reset()


def _check_payload(payload):
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise TypeError("payload must be a bytes-like object")
