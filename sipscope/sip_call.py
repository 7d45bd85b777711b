"""SIP calls (dialogs): their messages, media streams and call state."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from sipscope.packet import Address, Packet
from sipscope.sip_attr import SipAttr
from sipscope.sip_msg import SipMessage
from sipscope.sipcodes import SipMethod, transport_str
from sipscope.util import Timeval, timeval_to_duration


class CallState(IntEnum):
    """State of a dialog that started with an INVITE."""

    CALLSETUP = 1
    INCALL = 2
    CANCELLED = 3
    REJECTED = 4
    DIVERTED = 5
    BUSY = 6
    COMPLETED = 7


_STATE_NAMES: dict[int, str] = {
    CallState.CALLSETUP: "CALL SETUP",
    CallState.INCALL: "IN CALL",
    CallState.CANCELLED: "CANCELLED",
    CallState.REJECTED: "REJECTED",
    CallState.BUSY: "BUSY",
    CallState.DIVERTED: "DIVERTED",
    CallState.COMPLETED: "COMPLETED",
}

_BUSY_CODES = (480, 486, 600)
_DIVERT_CODES = (181, 301, 302)


def call_state_str(state: int) -> str:
    """Return the display text of a call state, or an empty string."""
    return _STATE_NAMES.get(state, "")


def _msg_time(msg: SipMessage | None) -> Timeval:
    return msg.time() if msg is not None else Timeval()


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


class SipCall:
    """All messages sharing a Call-ID, plus the media streams they set up."""

    def __init__(self, callid: str, xcallid: str = "", capture_rtp: bool = False):
        self.index = 0
        self.callid = callid
        self.xcallid = xcallid or ""
        self.filtered = -1
        self.state = 0
        self.changed = False
        self.locked = False
        self.reasontxt: str | None = None
        self.warning = 0
        self.xcalls: list[SipCall] = []
        self.invitecseq = 0
        self.msgs: list[SipMessage] = []
        self.cstart_msg: SipMessage | None = None
        self.cend_msg: SipMessage | None = None
        self.streams: list[Any] = []
        self.rtp_packets: list[Packet] | None = [] if capture_rtp else None

    def add_message(self, msg: SipMessage) -> None:
        """Append a message to the call and make the call its owner."""
        msg.call = self
        self.msgs.append(msg)
        msg.index = len(self.msgs) - 1
        self.changed = True

    def add_stream(self, stream: Any) -> None:
        """Append an RTP/RTCP stream to the call."""
        self.streams.append(stream)
        self.changed = True

    def add_rtp_packet(self, packet: Packet) -> None:
        """Store an RTP packet; only allowed when RTP capture is enabled."""
        if self.rtp_packets is None:
            raise RuntimeError("RTP packet capture is not enabled for this call")
        self.rtp_packets.append(packet)
        self.changed = True

    def add_xcall(self, xcall: SipCall | None) -> None:
        """Relate a call that refers to this one through its X-Call-ID."""
        if xcall is None:
            return
        self.changed = True
        self.xcalls.append(xcall)

    def has_changed(self) -> bool:
        return self.changed

    def msg_count(self) -> int:
        return len(self.msgs)

    def is_active(self) -> bool:
        """Return True while the call is being set up or in conversation."""
        return self.state in (CallState.CALLSETUP, CallState.INCALL)

    def is_invite(self) -> bool:
        """Return True if the first message of the call is an INVITE."""
        return bool(self.msgs) and self.msgs[0].reqresp == SipMethod.INVITE

    def msg_with_media(self, dst: Address) -> SipMessage | None:
        """Return the first message with an SDP media at the given address."""
        for msg in self.msgs:
            for media in msg.medias:
                if media.address == dst:
                    return msg
        return None

    def update_state(self, msg: SipMessage) -> None:
        """Advance the call state with its latest message."""
        if not self.is_invite():
            return
        reqresp = msg.reqresp

        if not self.state:
            if reqresp == SipMethod.INVITE:
                self.invitecseq = msg.cseq
                self.state = CallState.CALLSETUP
            return

        if self.state == CallState.CALLSETUP:
            if reqresp == SipMethod.ACK and self.invitecseq == msg.cseq:
                self.state = CallState.INCALL
                self.cstart_msg = msg
            elif reqresp == SipMethod.CANCEL:
                self.state = CallState.CANCELLED
            elif reqresp in _BUSY_CODES:
                self.state = CallState.BUSY
            elif reqresp > 400 and self.invitecseq == msg.cseq:
                self.state = CallState.REJECTED
            elif reqresp in _DIVERT_CODES:
                self.state = CallState.DIVERTED
        elif self.state == CallState.INCALL:
            if reqresp == SipMethod.BYE:
                self.state = CallState.COMPLETED
                self.cend_msg = msg
        elif reqresp == SipMethod.INVITE:
            self.invitecseq = msg.cseq
            self.state = CallState.CALLSETUP

    def attribute(self, attr_id: int) -> str | None:
        """Return a call attribute as text, or None when it is empty.

        Attributes that belong to messages are taken from the first message.
        """
        attr = SipAttr(attr_id)
        if attr is SipAttr.CALLINDEX:
            value: str | None = str(self.index)
        elif attr is SipAttr.CALLID:
            value = self.callid
        elif attr is SipAttr.XCALLID:
            value = self.xcallid
        elif attr is SipAttr.MSGCNT:
            value = str(len(self.msgs))
        elif attr is SipAttr.CALLSTATE:
            value = call_state_str(self.state)
        elif attr is SipAttr.TRANSPORT:
            value = transport_str(self.msgs[0].packet.type) if self.msgs else ""
        elif attr is SipAttr.CONVDUR:
            value = timeval_to_duration(_msg_time(self.cstart_msg), _msg_time(self.cend_msg))
        elif attr is SipAttr.TOTALDUR:
            if not self.msgs:
                return None
            value = timeval_to_duration(self.msgs[0].time(), self.msgs[-1].time())
        elif attr is SipAttr.REASON_TXT:
            value = self.reasontxt
        elif attr is SipAttr.WARNING:
            value = str(self.warning) if self.warning else None
        else:
            if not self.msgs:
                return None
            return self.msgs[0].attribute(attr)
        return value or None

    def compare(self, other: SipCall, attr_id: int) -> int:
        """Compare two calls by an attribute: -1, 0 or 1.

        Empty values sort before any non-empty value.
        """
        attr = SipAttr(attr_id)
        if attr is SipAttr.CALLINDEX:
            return _sign(self.index, other.index)
        if attr is SipAttr.MSGCNT:
            return _sign(self.msg_count(), other.msg_count())
        one = self.attribute(attr) or ""
        two = other.attribute(attr) or ""
        if not one and not two:
            return 0
        if not two:
            return 1
        if not one:
            return -1
        return _sign(one, two)


def msg_retrans_check(msg: SipMessage) -> None:
    """Mark the message as a retransmission of an earlier identical one.

    The previous message of the call with the same source and destination
    is compared case-insensitively with this one.
    """
    msgs = msg.call.msgs
    idx = next((i for i, item in enumerate(msgs) if item is msg), None)
    if idx is None:
        return
    prev = next(
        (
            earlier
            for earlier in reversed(msgs[:idx])
            if earlier.packet.src == msg.packet.src and earlier.packet.dst == msg.packet.dst
        ),
        None,
    )
    if prev is not None and msg.payload().lower() == prev.payload().lower():
        msg.retrans = prev