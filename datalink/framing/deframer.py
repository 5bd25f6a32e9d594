"""
Deframer / Resynchronizer

This module locates frames in the receive buffer despite byte stuffing and
corruption, discards damaged prefixes, validates trailers and yields one
decoded frame per call, or None when no complete frame is available yet.
"""

from dataclasses import dataclass
from typing import Optional

from config import FRAME_NUMBER_MODULUS
from .checksum import Checksum, make_checksum
from .tags import LinkConfig
from datalink.utils.buffer import ReceiveBuffer
from datalink.utils.logger import LinkLogger, get_logger


@dataclass
class DecodedFrame:
    """
    A frame extracted from the receive buffer.

    Attributes:
        payload: Verified payload bytes (empty for ACK frames)
        frame_num: Carried frame number (ARQ frames only)
        is_ack: Whether this is an acknowledgment frame
        wire_size: Number of buffer bytes the frame occupied
    """
    payload: bytes = b''
    frame_num: Optional[int] = None
    is_ack: bool = False
    wire_size: int = 0


class Deframer:
    """
    Extracts verified frames from a receive buffer.

    Each call to ``extract`` either consumes bytes or returns None without
    touching a partial frame, so it can be invoked repeatedly as more input
    arrives.

    Attributes:
        config: Link configuration
        checksum: Checksum strategy used to validate trailers
        logger: Event sink for damaged frames and resynchronization
    """

    def __init__(
        self,
        config: LinkConfig,
        checksum: Optional[Checksum] = None,
        logger: Optional[LinkLogger] = None
    ):
        """
        Initialize deframer.

        Args:
            config: Link configuration
            checksum: Checksum strategy (built from config if None)
            logger: Event sink (global logger if None)
        """
        self.config = config
        self.checksum = checksum or make_checksum(config)
        self.logger = logger or get_logger()

        # Trailer = [frame number] + check value
        self.trailer_size = self.checksum.size + (1 if config.arq_enabled else 0)

        # Statistics
        self.frames_decoded = 0
        self.acks_decoded = 0
        self.frames_damaged = 0
        self.resyncs = 0
        self.bytes_discarded = 0

    def extract(self, buffer: ReceiveBuffer) -> Optional[DecodedFrame]:
        """
        Extract the next verified frame from the buffer.

        Bytes before the first start tag are discarded. A start tag seen
        inside a frame discards what was accumulated and restarts from the
        new tag. Frames failing their check are discarded and scanning
        continues with the rest of the buffer.

        Args:
            buffer: Receive buffer (consumed from the front)

        Returns:
            Decoded frame, or None if no complete frame is available
        """
        cfg = self.config

        while True:
            # Seeking-Start
            start = buffer.find(cfg.start_tag)
            if start < 0:
                self.bytes_discarded += buffer.clear()
                return None
            if start > 0:
                self.bytes_discarded += len(buffer.drain(start))

            # Accumulating
            body = bytearray()
            escaped = False
            cursor = 1
            stop_found = False

            while cursor < len(buffer):
                current = buffer[cursor]

                if current == cfg.escape_tag:
                    if cursor + 1 >= len(buffer):
                        # Escape is the last byte available
                        return None
                    body.append(buffer[cursor + 1])
                    escaped = True
                    cursor += 2

                elif current == cfg.stop_tag:
                    buffer.drain(cursor + 1)
                    stop_found = True
                    break

                elif current == cfg.start_tag:
                    # Everything before this start belongs to a damaged frame
                    discarded = len(buffer.drain(cursor))
                    self.bytes_discarded += discarded
                    self.resyncs += 1
                    self.logger.resync(discarded)
                    body = bytearray()
                    escaped = False
                    cursor = 1

                else:
                    body.append(current)
                    cursor += 1

            if not stop_found:
                return None

            frame = self._decode(bytes(body), escaped, cursor + 1)
            if frame is not None:
                return frame

    def _decode(self, body: bytes, escaped: bool, wire_size: int) -> Optional[DecodedFrame]:
        """Validate a complete frame body; None if damaged."""
        cfg = self.config

        if cfg.arq_enabled and not escaped and body == bytes((cfg.ack_tag,)):
            self.acks_decoded += 1
            return DecodedFrame(is_ack=True, wire_size=wire_size)

        if len(body) < self.trailer_size:
            self._damaged(body, "frame shorter than trailer")
            return None

        check_bytes = body[len(body) - self.checksum.size:]
        check_value = self.checksum.from_bytes(check_bytes)
        checked = body[:len(body) - self.checksum.size]

        if not self.checksum.verify(checked, check_value):
            self._damaged(checked, "checksum mismatch")
            return None

        frame_num = None
        payload = checked
        if cfg.arq_enabled:
            frame_num = checked[-1]
            payload = checked[:-1]
            if frame_num >= FRAME_NUMBER_MODULUS:
                self._damaged(checked, "invalid frame number")
                return None

        self.frames_decoded += 1
        return DecodedFrame(payload=payload, frame_num=frame_num, wire_size=wire_size)

    def _damaged(self, extracted: bytes, reason: str):
        self.frames_damaged += 1
        self.logger.frame_damaged(len(extracted), reason)

    def get_statistics(self) -> dict:
        """Get deframer statistics."""
        return {
            'frames_decoded': self.frames_decoded,
            'acks_decoded': self.acks_decoded,
            'frames_damaged': self.frames_damaged,
            'resyncs': self.resyncs,
            'bytes_discarded': self.bytes_discarded
        }

    def reset(self):
        """Reset statistics."""
        self.frames_decoded = 0
        self.acks_decoded = 0
        self.frames_damaged = 0
        self.resyncs = 0
        self.bytes_discarded = 0
