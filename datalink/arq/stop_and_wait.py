"""
Stop-and-Wait ARQ Controller

This module implements the bookkeeping of stop-and-wait automatic repeat
request: one outstanding frame, a 1-bit alternating frame number on each
side, acknowledgment handling and timeout-driven retransmission.
"""

from enum import Enum
from typing import Optional

from config import ARQ_TIMEOUT, FRAME_NUMBER_MODULUS
from .timer import RetransmissionTimer


class ArqState(Enum):
    """Sender state."""
    IDLE = 0
    AWAITING_ACK = 1


def next_frame_num(frame_num: int) -> int:
    """Get next frame number."""
    return (frame_num + 1) % FRAME_NUMBER_MODULUS


class StopAndWaitController:
    """
    Stop-and-wait ARQ state machine.

    The controller does not frame or transmit anything itself; the link
    layer asks it which frame number to use, hands it the wire frame it
    sent, and asks it on every timer tick whether to resend.

    Attributes:
        timeout: Retransmission timeout in seconds
        send_frame_num: Frame number of the next (or outstanding) frame
        expected_receive_frame_num: Frame number expected from the peer
        last_sent_wire_frame: Copy of the outstanding wire frame
        timer: Retransmission timer
    """

    def __init__(self, timeout: float = ARQ_TIMEOUT):
        """
        Initialize controller.

        Args:
            timeout: Retransmission timeout in seconds
        """
        self.timeout = timeout
        self.timer = RetransmissionTimer(timeout=timeout)

        self.send_frame_num = 0
        self.expected_receive_frame_num = 0
        self.waiting_for_ack = False
        self.last_sent_wire_frame: Optional[bytes] = None

        # Statistics
        self.frames_sent = 0
        self.retransmissions = 0
        self.acks_received = 0
        self.stray_acks = 0
        self.frames_accepted = 0
        self.duplicates_received = 0
        self.busy_rejections = 0

    @property
    def state(self) -> ArqState:
        """Current sender state."""
        return ArqState.AWAITING_ACK if self.waiting_for_ack else ArqState.IDLE

    @property
    def sent_timestamp(self) -> float:
        """Time the outstanding frame was last (re)transmitted."""
        return self.timer.start_time

    def can_send(self) -> bool:
        """Check if a new frame may be sent."""
        return not self.waiting_for_ack

    def reject_busy(self):
        """Record a send refused while a frame is outstanding."""
        self.busy_rejections += 1

    def on_frame_sent(self, wire_frame: bytes, current_time: float):
        """
        Record a newly transmitted frame.

        Args:
            wire_frame: Wire bytes that were transmitted
            current_time: Transmission time
        """
        if self.waiting_for_ack:
            raise RuntimeError("A frame is already awaiting acknowledgment")

        self.last_sent_wire_frame = bytes(wire_frame)
        self.waiting_for_ack = True
        self.timer.start(current_time)
        self.frames_sent += 1

    def prepare_send(self, current_time: float, wire_frame: bytes) -> bool:
        """
        Claim the link for a new frame, or refuse it while busy.

        Args:
            current_time: Transmission time
            wire_frame: Wire bytes about to be transmitted

        Returns:
            True if the frame is now outstanding, False if refused
        """
        if not self.can_send():
            self.reject_busy()
            return False
        self.on_frame_sent(wire_frame, current_time)
        return True

    def on_ack_received(self) -> bool:
        """
        Process a received acknowledgment.

        Returns:
            True if the ACK released the outstanding frame, False if no
            frame was outstanding
        """
        if not self.waiting_for_ack:
            self.stray_acks += 1
            return False

        self.waiting_for_ack = False
        self.last_sent_wire_frame = None
        self.timer.stop()
        self.send_frame_num = next_frame_num(self.send_frame_num)
        self.acks_received += 1
        return True

    def on_timer_tick(self, current_time: float) -> Optional[bytes]:
        """
        Check the retransmission timer.

        Args:
            current_time: Current time

        Returns:
            The outstanding wire frame, unchanged, if it must be resent;
            None otherwise
        """
        if not self.waiting_for_ack:
            return None

        if not self.timer.check_expired(current_time):
            return None

        # Same logical frame: frame number is not advanced
        self.timer.restart(current_time)
        self.retransmissions += 1
        return self.last_sent_wire_frame

    def on_data_frame(self, frame_num: int) -> bool:
        """
        Process the frame number of a received data frame.

        Args:
            frame_num: Frame number carried by the frame

        Returns:
            True if the payload should be delivered, False for a duplicate
        """
        if frame_num != self.expected_receive_frame_num:
            self.duplicates_received += 1
            return False

        self.expected_receive_frame_num = next_frame_num(self.expected_receive_frame_num)
        self.frames_accepted += 1
        return True

    def get_statistics(self) -> dict:
        """Get controller statistics."""
        return {
            'state': self.state.name,
            'send_frame_num': self.send_frame_num,
            'expected_receive_frame_num': self.expected_receive_frame_num,
            'frames_sent': self.frames_sent,
            'retransmissions': self.retransmissions,
            'acks_received': self.acks_received,
            'stray_acks': self.stray_acks,
            'frames_accepted': self.frames_accepted,
            'duplicates_received': self.duplicates_received,
            'busy_rejections': self.busy_rejections
        }

    def reset(self):
        """Reset controller to link startup state."""
        self.timer = RetransmissionTimer(timeout=self.timeout)
        self.send_frame_num = 0
        self.expected_receive_frame_num = 0
        self.waiting_for_ack = False
        self.last_sent_wire_frame = None

        self.frames_sent = 0
        self.retransmissions = 0
        self.acks_received = 0
        self.stray_acks = 0
        self.frames_accepted = 0
        self.duplicates_received = 0
        self.busy_rejections = 0
