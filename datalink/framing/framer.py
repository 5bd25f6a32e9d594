"""
Framer

This module turns raw payloads into byte-stuffed wire frames bounded by
start/stop tags, each carrying its own check value.

Wire layout of one (sub-)frame::

    Start  stuff(data)  stuff(trailer)  Stop

The trailer is the check value for the parity/CRC variants, or the frame
number followed by the check value (computed over data + frame number)
when stop-and-wait ARQ is enabled.
"""

from typing import List, Optional

from config import FRAME_NUMBER_MODULUS
from .checksum import Checksum, make_checksum
from .tags import LinkConfig


class Framer:
    """
    Serializes payloads into wire frames.

    Attributes:
        config: Link configuration
        checksum: Checksum strategy used for the trailer
    """

    def __init__(self, config: LinkConfig, checksum: Optional[Checksum] = None):
        """
        Initialize framer.

        Args:
            config: Link configuration
            checksum: Checksum strategy (built from config if None)
        """
        self.config = config
        self.checksum = checksum or make_checksum(config)
        self._reserved = config.reserved_tags

        # Statistics
        self.frames_created = 0
        self.bytes_escaped = 0

    def stuff(self, data: bytes) -> bytearray:
        """
        Precede every tag-valued byte with an escape byte.

        Args:
            data: Bytes to stuff

        Returns:
            Stuffed bytes
        """
        stuffed = bytearray()
        for byte in data:
            if byte in self._reserved:
                stuffed.append(self.config.escape_tag)
                self.bytes_escaped += 1
            stuffed.append(byte)
        return stuffed

    def split(self, payload: bytes) -> List[bytes]:
        """
        Split a payload into sub-frames of at most max_frame_size bytes.

        An empty payload yields a single empty sub-frame.
        """
        size = self.config.max_frame_size
        if not payload:
            return [b'']
        return [payload[i:i + size] for i in range(0, len(payload), size)]

    def frame(self, payload: bytes, frame_num: Optional[int] = None) -> bytes:
        """
        Frame a payload for transmission.

        Without ARQ the payload is split into independently checksummed
        sub-frames. With ARQ the whole payload is framed once and carries
        the given frame number.

        Args:
            payload: Raw payload bytes
            frame_num: Frame number (required when ARQ is enabled)

        Returns:
            Wire bytes ready for transmission
        """
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError("payload must be a bytes-like object")
        payload = bytes(payload)

        if self.config.arq_enabled:
            if frame_num is None:
                raise ValueError("ARQ frames require a frame number")
            return bytes(self._frame_numbered(payload, frame_num))

        wire = bytearray()
        for chunk in self.split(payload):
            trailer = self.checksum.to_bytes(self.checksum.compute(chunk))
            wire += self._enclose(chunk, trailer)
        return bytes(wire)

    def ack_frame(self) -> bytes:
        """Build an acknowledgment frame: Start, Ack, Stop, unstuffed."""
        return bytes((self.config.start_tag, self.config.ack_tag, self.config.stop_tag))

    def _frame_numbered(self, payload: bytes, frame_num: int) -> bytearray:
        if not 0 <= frame_num < FRAME_NUMBER_MODULUS:
            raise ValueError(f"Frame number must be 0 or 1, got {frame_num}")

        # Check value covers payload + frame number
        checked = payload + bytes((frame_num,))
        trailer = bytes((frame_num,)) + self.checksum.to_bytes(self.checksum.compute(checked))
        return self._enclose(payload, trailer)

    def _enclose(self, data: bytes, trailer: bytes) -> bytearray:
        wire = bytearray((self.config.start_tag,))
        wire += self.stuff(data)
        wire += self.stuff(trailer)
        wire.append(self.config.stop_tag)
        self.frames_created += 1
        return wire

    def get_statistics(self) -> dict:
        """Get framer statistics."""
        return {
            'frames_created': self.frames_created,
            'bytes_escaped': self.bytes_escaped
        }
