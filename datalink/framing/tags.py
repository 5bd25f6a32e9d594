"""
Link Configuration and Tag Alphabet

This module defines the runtime configuration of a link: the four framing
tag byte values, the sub-frame size limit, the checksum strategy and the
stop-and-wait ARQ settings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from config import (
    START_TAG, STOP_TAG, ESCAPE_TAG, ACK_TAG,
    MAX_FRAME_SIZE, CHECKSUM_PARITY, CHECKSUM_CRC, DEFAULT_CHECKSUM,
    CRC_GENERATOR, CRC_GENERATOR_WIDTH, ARQ_TIMEOUT
)


class ChecksumKind(Enum):
    """Error-detection strategy."""
    PARITY = CHECKSUM_PARITY
    CRC = CHECKSUM_CRC


@dataclass
class LinkConfig:
    """
    Configuration for one link.

    Attributes:
        start_tag: Byte value opening a frame
        stop_tag: Byte value closing a frame
        escape_tag: Byte value preceding any literal tag-valued byte
        ack_tag: Byte value forming the body of an acknowledgment frame
        max_frame_size: Maximum payload bytes per sub-frame (non-ARQ)
        checksum_kind: Parity or CRC
        crc_generator: CRC generator polynomial
        crc_width: Number of bits in the generator polynomial
        arq_timeout: Retransmission timeout in seconds
        arq_enabled: Use stop-and-wait ARQ (whole-payload frames)
    """
    start_tag: int = START_TAG
    stop_tag: int = STOP_TAG
    escape_tag: int = ESCAPE_TAG
    ack_tag: int = ACK_TAG
    max_frame_size: int = MAX_FRAME_SIZE
    checksum_kind: ChecksumKind = ChecksumKind(DEFAULT_CHECKSUM)
    crc_generator: int = CRC_GENERATOR
    crc_width: int = CRC_GENERATOR_WIDTH
    arq_timeout: float = ARQ_TIMEOUT
    arq_enabled: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        tags = (self.start_tag, self.stop_tag, self.escape_tag, self.ack_tag)
        for tag in tags:
            if not 0 <= tag <= 0xFF:
                raise ValueError(f"Tag value {tag!r} is not a byte")
        if len(set(tags)) != len(tags):
            raise ValueError("Tag values must be distinct")
        if self.max_frame_size < 1:
            raise ValueError("max_frame_size must be at least 1")
        if not 2 <= self.crc_width <= 33:
            raise ValueError("crc_width must be between 2 and 33 bits")
        if self.crc_generator <= 0 or self.crc_generator >= (1 << self.crc_width):
            raise ValueError("crc_generator does not fit in crc_width bits")
        if self.arq_timeout <= 0:
            raise ValueError("arq_timeout must be positive")

    @property
    def reserved_tags(self) -> FrozenSet[int]:
        """Byte values that must be escaped inside a frame body."""
        tags = {self.start_tag, self.stop_tag, self.escape_tag}
        if self.arq_enabled:
            tags.add(self.ack_tag)
        return frozenset(tags)

    @classmethod
    def parity(cls, **overrides) -> 'LinkConfig':
        """Parity-checked sub-frames, no ARQ."""
        return cls(checksum_kind=ChecksumKind.PARITY, arq_enabled=False, **overrides)

    @classmethod
    def crc(cls, **overrides) -> 'LinkConfig':
        """CRC-checked sub-frames, no ARQ."""
        return cls(checksum_kind=ChecksumKind.CRC, arq_enabled=False, **overrides)

    @classmethod
    def stop_and_wait(cls, **overrides) -> 'LinkConfig':
        """Parity-checked whole-payload frames with stop-and-wait ARQ."""
        overrides.setdefault('checksum_kind', ChecksumKind.PARITY)
        return cls(arq_enabled=True, **overrides)
