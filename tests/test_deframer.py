"""
Unit tests for the deframer and resynchronization.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datalink.framing.deframer import Deframer
from datalink.framing.framer import Framer
from datalink.framing.tags import LinkConfig, ChecksumKind
from datalink.utils.buffer import ReceiveBuffer
from datalink.utils.logger import LinkLogger, LogLevel


def quiet_logger() -> LinkLogger:
    return LinkLogger(name="Test", level=LogLevel.CRITICAL)


def make_pair(config: LinkConfig):
    return Framer(config), Deframer(config, logger=quiet_logger())


def extract_all(deframer: Deframer, buffer: ReceiveBuffer) -> list:
    frames = []
    while True:
        frame = deframer.extract(buffer)
        if frame is None:
            return frames
        frames.append(frame)


class TestRoundTrip:
    """Tests for frame, then deframe."""

    @pytest.mark.parametrize("config", [
        LinkConfig.parity(),
        LinkConfig.crc(),
        LinkConfig.crc(crc_generator=0x11021, crc_width=17, max_frame_size=5),
    ])
    def test_every_byte_value(self, config):
        """Test all 256 byte values survive framing, tags included."""
        framer, deframer = make_pair(config)
        payload = bytes(range(256))

        buffer = ReceiveBuffer()
        buffer.extend(framer.frame(payload))
        frames = extract_all(deframer, buffer)

        assert b''.join(f.payload for f in frames) == payload
        assert len(frames) == -(-256 // config.max_frame_size)
        assert deframer.frames_damaged == 0
        assert len(buffer) == 0

    @pytest.mark.parametrize("size", [0, 1, 7, 8, 9, 16, 17])
    def test_boundary_sizes(self, size):
        """Test empty, max and max+1 payload sizes."""
        framer, deframer = make_pair(LinkConfig.crc())
        payload = bytes((i * 37) & 0xFF for i in range(size))

        buffer = ReceiveBuffer()
        buffer.extend(framer.frame(payload))
        frames = extract_all(deframer, buffer)

        assert b''.join(f.payload for f in frames) == payload

    def test_arq_round_trip(self):
        """Test a numbered frame returns its payload and number."""
        framer, deframer = make_pair(LinkConfig.stop_and_wait())
        payload = bytes(range(256))

        buffer = ReceiveBuffer()
        buffer.extend(framer.frame(payload, 1))
        frame = deframer.extract(buffer)

        assert frame.payload == payload
        assert frame.frame_num == 1
        assert not frame.is_ack

    def test_byte_by_byte_arrival(self):
        """Test frames reassemble when fed one byte at a time."""
        framer, deframer = make_pair(LinkConfig.crc())
        payload = b'{split}\\across@calls'
        wire = framer.frame(payload)

        buffer = ReceiveBuffer()
        delivered = bytearray()
        for byte in wire:
            buffer.extend(bytes([byte]))
            for frame in extract_all(deframer, buffer):
                delivered += frame.payload

        assert bytes(delivered) == payload


class TestResynchronization:
    """Tests for damaged input handling."""

    def test_garbage_prefix_discarded(self):
        """Test bytes before the first start tag are dropped."""
        framer, deframer = make_pair(LinkConfig.crc())

        buffer = ReceiveBuffer()
        buffer.extend(b'xyz' + framer.frame(b'data'))
        frame = deframer.extract(buffer)

        assert frame.payload == b'data'
        assert deframer.bytes_discarded == 3

    def test_no_start_tag_clears_buffer(self):
        """Test a buffer without any start tag is emptied."""
        _, deframer = make_pair(LinkConfig.crc())

        buffer = ReceiveBuffer()
        buffer.extend(b'noise only')

        assert deframer.extract(buffer) is None
        assert len(buffer) == 0

    def test_start_inside_frame(self):
        """Test garbage, a truncated frame, then a good frame."""
        framer, deframer = make_pair(LinkConfig.crc())

        buffer = ReceiveBuffer()
        buffer.extend(b'garbage{abc' + framer.frame(b'good'))
        frame = deframer.extract(buffer)

        assert frame.payload == b'good'
        assert deframer.resyncs == 1
        assert deframer.bytes_discarded == len(b'garbage{abc')
        assert len(buffer) == 0

    def test_damaged_frame_skipped(self):
        """Test a frame failing its check is dropped and the next one returned."""
        framer, deframer = make_pair(LinkConfig.crc())

        first = bytearray(framer.frame(b'hello'))
        first[1] ^= 0x01  # 'h' -> 'i'
        buffer = ReceiveBuffer()
        buffer.extend(bytes(first) + framer.frame(b'world'))

        frame = deframer.extract(buffer)

        assert frame.payload == b'world'
        assert deframer.frames_damaged == 1

    @pytest.mark.parametrize("config, frame_num", [
        (LinkConfig.parity(), None),
        (LinkConfig.crc(), None),
        (LinkConfig.stop_and_wait(), 1),
        (LinkConfig.stop_and_wait(checksum_kind=ChecksumKind.CRC), 0),
    ])
    def test_every_single_bit_flip_detected(self, config, frame_num):
        """Test no single-bit flip inside a frame yields a wrong delivery."""
        framer = Framer(config)
        payload = b'Hi!'
        wire = framer.frame(payload, frame_num)

        # Every bit between the start and stop tags
        for position in range(1, len(wire) - 1):
            for bit in range(8):
                damaged = bytearray(wire)
                damaged[position] ^= 1 << bit
                deframer = Deframer(config, logger=quiet_logger())
                buffer = ReceiveBuffer()
                buffer.extend(bytes(damaged))

                for frame in extract_all(deframer, buffer):
                    assert frame.is_ack or (
                        frame.payload == payload and frame.frame_num == frame_num
                    )

    def test_short_frame_damaged(self):
        """Test a frame too short for its trailer is damaged."""
        _, deframer = make_pair(LinkConfig.crc())

        buffer = ReceiveBuffer()
        buffer.extend(b'{}')

        assert deframer.extract(buffer) is None
        assert deframer.frames_damaged == 1
        assert len(buffer) == 0

    def test_invalid_frame_number(self):
        """Test a correctly checked frame number of 2 is rejected."""
        _, deframer = make_pair(LinkConfig.stop_and_wait())

        # parity('A' + 0x02) = 1
        buffer = ReceiveBuffer()
        buffer.extend(b'{A\x02\x01}')

        assert deframer.extract(buffer) is None
        assert deframer.frames_damaged == 1


class TestIncompleteInput:
    """Tests for partial frames."""

    def test_missing_stop_preserved(self):
        """Test a frame without its stop tag waits for more input."""
        framer, deframer = make_pair(LinkConfig.crc())
        wire = framer.frame(b'partial')

        buffer = ReceiveBuffer()
        buffer.extend(wire[:-1])

        assert deframer.extract(buffer) is None
        assert len(buffer) == len(wire) - 1

        buffer.extend(wire[-1:])
        assert deframer.extract(buffer).payload == b'partial'

    def test_escape_at_end_of_buffer(self):
        """Test a trailing escape byte is kept for the next call."""
        framer, deframer = make_pair(LinkConfig.parity())
        wire = framer.frame(b'{')  # {\{<parity>}

        buffer = ReceiveBuffer()
        buffer.extend(wire[:2])

        assert deframer.extract(buffer) is None
        assert buffer.peek() == b'{\\'

        buffer.extend(wire[2:])
        assert deframer.extract(buffer).payload == b'{'

    def test_empty_buffer(self):
        """Test an empty buffer yields nothing."""
        _, deframer = make_pair(LinkConfig.crc())

        assert deframer.extract(ReceiveBuffer()) is None


class TestAckFrames:
    """Tests for acknowledgment recognition."""

    def test_ack_recognized(self):
        """Test {@} is an ack with ARQ enabled."""
        _, deframer = make_pair(LinkConfig.stop_and_wait())

        buffer = ReceiveBuffer()
        buffer.extend(b'{@}')
        frame = deframer.extract(buffer)

        assert frame.is_ack
        assert frame.payload == b''
        assert deframer.acks_decoded == 1

    def test_escaped_ack_byte_is_data(self):
        """Test a payload of one ack-valued byte is not an ack."""
        framer, deframer = make_pair(LinkConfig.stop_and_wait())

        buffer = ReceiveBuffer()
        buffer.extend(framer.frame(b'@', 0))
        frame = deframer.extract(buffer)

        assert not frame.is_ack
        assert frame.payload == b'@'

    def test_ack_without_arq_is_damaged(self):
        """Test {@} fails the check when ARQ is off."""
        _, deframer = make_pair(LinkConfig.crc())

        buffer = ReceiveBuffer()
        buffer.extend(b'{@}')

        assert deframer.extract(buffer) is None
        assert deframer.frames_damaged == 1

    def test_ack_between_data_frames(self):
        """Test acks and data frames interleave in one buffer."""
        config = LinkConfig.stop_and_wait(checksum_kind=ChecksumKind.CRC)
        framer, deframer = make_pair(config)

        buffer = ReceiveBuffer()
        buffer.extend(framer.frame(b'one', 0) + b'{@}' + framer.frame(b'two', 1))
        frames = extract_all(deframer, buffer)

        assert [f.is_ack for f in frames] == [False, True, False]
        assert frames[2].payload == b'two'


class TestStatistics:
    """Tests for counters."""

    def test_reset(self):
        """Test reset clears counters."""
        _, deframer = make_pair(LinkConfig.crc())
        buffer = ReceiveBuffer()
        buffer.extend(b'junk{}')
        deframer.extract(buffer)

        deframer.reset()
        stats = deframer.get_statistics()

        assert all(value == 0 for value in stats.values())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
