"""
Checksum Engine

This module provides the error-detection strategies used by the framer
and deframer: a single parity bit over all data bits, and a CRC computed
by bit-serial polynomial division.
"""

from typing import Iterable

from config import BITS_PER_BYTE
from .tags import ChecksumKind, LinkConfig


class Checksum:
    """
    Base class for checksum strategies.

    Subclasses compute a check value over a byte sequence and report how
    many trailer bytes the value occupies on the wire.
    """

    #: Number of trailer bytes carrying the check value
    size = 1

    def compute(self, data: bytes) -> int:
        raise NotImplementedError

    def verify(self, data: bytes, check_value: int) -> bool:
        """
        Verify a received check value.

        Args:
            data: Received data bytes (without the check value)
            check_value: Check value carried in the frame trailer

        Returns:
            True if the check value matches
        """
        return self.compute(data) == check_value

    def to_bytes(self, check_value: int) -> bytes:
        """Encode a check value as big-endian trailer bytes."""
        return check_value.to_bytes(self.size, 'big')

    def from_bytes(self, trailer: bytes) -> int:
        """Decode big-endian trailer bytes to a check value."""
        return int.from_bytes(trailer, 'big')


class ParityChecksum(Checksum):
    """
    Single-bit parity over every bit of the input.

    The check value is 1 when the number of set bits is odd, 0 otherwise.
    """

    size = 1

    def compute(self, data: bytes) -> int:
        """
        Calculate the parity of a byte sequence.

        Args:
            data: Bytes to check

        Returns:
            1 if the parity is odd, 0 if even
        """
        parity = 0
        for byte in data:
            parity ^= byte_parity(byte)
        return parity

    def __repr__(self) -> str:
        return "ParityChecksum()"


class CrcChecksum(Checksum):
    """
    Cyclic redundancy check by straight binary polynomial division.

    The input is treated as one big-endian bit stream. ``width - 1`` zero
    bits are appended and the stream is divided by the generator using a
    shift register: each bit is shifted in, and whenever the bit at the
    generator's leading position is set the register is XORed with the
    generator. The final register is the remainder.

    ``width`` counts every bit of the generator, so dividing by 0x1A7 (an
    8-bit check value) takes ``width=9``; with ``width=8`` the same digits
    would mean the degree-7 polynomial 0xA7.

    Attributes:
        generator: Generator polynomial including its leading bit
        width: Number of bits in the generator polynomial
        check_bits: Number of bits in the check value (width - 1)
    """

    def __init__(self, generator: int, width: int):
        """
        Initialize CRC strategy.

        Args:
            generator: Generator polynomial, with or without its leading bit
            width: Number of bits in the full generator polynomial
        """
        if width < 2:
            raise ValueError("Generator must have at least 2 bits")
        if generator <= 0 or generator >= (1 << width):
            raise ValueError("Generator does not fit in the given width")

        self.width = width
        self.generator = generator | (1 << (width - 1))
        self.check_bits = width - 1
        self.size = (self.check_bits + BITS_PER_BYTE - 1) // BITS_PER_BYTE

    def remainder(self, data: Iterable[int], extra_zero_bits: int = 0) -> int:
        """
        Divide a byte stream by the generator and return the remainder.

        Args:
            data: Bytes forming the dividend, most significant bit first
            extra_zero_bits: Zero bits appended after the data

        Returns:
            Remainder (fits in ``width - 1`` bits)
        """
        top = self.width - 1
        register = 0

        for byte in data:
            for pos in range(BITS_PER_BYTE - 1, -1, -1):
                register = (register << 1) | ((byte >> pos) & 1)
                if (register >> top) & 1:
                    register ^= self.generator

        for _ in range(extra_zero_bits):
            register <<= 1
            if (register >> top) & 1:
                register ^= self.generator

        return register

    def compute(self, data: bytes) -> int:
        """
        Calculate the CRC of a byte sequence.

        Args:
            data: Bytes to check

        Returns:
            CRC check value
        """
        return self.remainder(data, extra_zero_bits=self.check_bits)

    def verify(self, data: bytes, check_value: int) -> bool:
        """
        Verify a received CRC.

        The check value is aligned to a whole number of trailer bytes, so
        it is compared directly rather than divided as part of the stream.
        """
        if check_value >> self.check_bits:
            return False
        return self.compute(data) == check_value

    def __repr__(self) -> str:
        return f"CrcChecksum(generator=0x{self.generator:X}, width={self.width})"


def byte_parity(byte: int) -> int:
    """Return 1 if the byte has an odd number of set bits."""
    parity = 0
    for pos in range(BITS_PER_BYTE):
        parity ^= (byte >> pos) & 1
    return parity


def make_checksum(config: LinkConfig) -> Checksum:
    """
    Build the checksum strategy for a link configuration.

    Args:
        config: Link configuration

    Returns:
        Checksum strategy instance
    """
    if config.checksum_kind == ChecksumKind.PARITY:
        return ParityChecksum()
    return CrcChecksum(config.crc_generator, config.crc_width)
