"""
Framing package - Wire format of the data link.

Contains implementations for:
- Tag set and link configuration
- Parity and CRC checksums
- Byte-stuffing framer
- Deframer with resynchronization
"""

from .tags import LinkConfig, ChecksumKind
from .checksum import Checksum, ParityChecksum, CrcChecksum, make_checksum
from .framer import Framer
from .deframer import Deframer, DecodedFrame

__all__ = [
    'LinkConfig',
    'ChecksumKind',
    'Checksum',
    'ParityChecksum',
    'CrcChecksum',
    'make_checksum',
    'Framer',
    'Deframer',
    'DecodedFrame'
]
