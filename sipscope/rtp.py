"""RTP/RTCP streams and the matching of captured media packets to them."""

from __future__ import annotations

import time
from typing import Any, Iterable

from sipscope.packet import Address, Packet, PacketType
from sipscope.rtp_proto import (
    STREAM_INACTIVE_SECS,
    RtcpInfo,
    data_is_rtcp,
    data_is_rtp,
    parse_rtcp,
    standard_format,
)
from sipscope.sip_msg import SdpMedia
from sipscope.util import Timeval, timeval_is_older


class RtpStream:
    """A media stream set up by an SDP description and fed by captured packets."""

    def __init__(self, media: SdpMedia | None, dst: Address, stream_type: PacketType):
        self.type = stream_type
        self.media = media
        self.src = Address()
        self.dst = dst
        self.pktcnt = 0
        self.time = Timeval()
        self.lasttm = 0
        self.fmtcode = 0
        self.rtcpinfo = RtcpInfo()

    def complete(self, src: Address) -> RtpStream:
        """Set the source address of the stream and return it."""
        self.src = src
        return self

    def set_format(self, fmt: int) -> None:
        self.fmtcode = fmt

    def add_packet(self, packet: Packet) -> None:
        """Count a packet; the first one fixes the stream's start time."""
        if self.pktcnt == 0:
            self.time = packet.time()
        self.lasttm = int(time.time())
        self.pktcnt += 1

    def is_complete(self) -> bool:
        """Return True once the stream has received a packet."""
        return self.pktcnt != 0

    def is_active(self) -> bool:
        """Return True if a packet arrived within the inactivity window."""
        return int(time.time()) - self.lasttm <= STREAM_INACTIVE_SECS

    def is_older(self, other: RtpStream | None) -> bool:
        """Return True if this stream started at or after the other one."""
        if other is None:
            return True
        if other is self:
            return False
        return timeval_is_older(self.time, other.time)

    def format_name(self) -> str | None:
        """Return the stream's payload format name, or None when unknown."""
        if self.media is None:
            return None
        return standard_format(self.fmtcode) or self.media.get_format(self.fmtcode)

    def call(self) -> Any:
        """Return the call owning the SDP message of this stream, or None."""
        if self.media is not None and self.media.msg is not None:
            return self.media.msg.call
        return None


def _owner_call(stream: RtpStream) -> Any:
    return stream.media.msg.call


def _new_stream(media: SdpMedia, dst: Address, src: Address, fmt: int) -> RtpStream:
    stream = RtpStream(media, dst, PacketType.RTP).complete(src)
    stream.set_format(fmt)
    return stream


def find_call_exact_stream(call: Any, src: Address, dst: Address) -> RtpStream | None:
    """Return the newest stream of the call with exactly this source and destination."""
    for stream in reversed(call.streams):
        if stream.src == src and stream.dst == dst:
            return stream
    return None


def find_call_stream(call: Any, src: Address, dst: Address) -> RtpStream | None:
    """Return the newest stream of the call going to dst.

    Without a source port any stream to dst matches; with one, a stream
    still without packets is preferred, then an exact source match.
    """
    for stream in reversed(call.streams):
        if stream.dst == dst and (not src.port or not stream.pktcnt):
            return stream
    if src.port:
        return find_call_exact_stream(call, src, dst)
    return None


def find_stream_format(calls: Iterable[Any], src: Address, dst: Address, fmt: int) -> RtpStream | None:
    """Find the RTP stream for a packet from src to dst with the given format.

    An exact match wins; a complete stream with matching addresses but
    another format is returned only when nothing better exists.
    """
    candidate = None
    for call in reversed(list(calls)):
        for stream in reversed(call.streams):
            if stream.type != PacketType.RTP:
                continue
            if stream.is_complete():
                if stream.src == src and stream.dst == dst:
                    if stream.fmtcode == fmt:
                        return stream
                    candidate = stream
            elif stream.dst == dst:
                return stream
    return candidate


def find_rtcp_stream(calls: Iterable[Any], src: Address, dst: Address) -> RtpStream | None:
    """Find the RTCP stream for a packet from src to dst."""
    for call in reversed(list(calls)):
        stream = find_call_stream(call, src, dst)
        if stream is not None and stream.type == PacketType.RTCP:
            return stream
    return None


def _check_rtp(packet: Packet, payload: bytes, calls: Iterable[Any]) -> RtpStream | None:
    src, dst = packet.src, packet.dst
    fmt = payload[1] & 0x7F

    stream = find_stream_format(calls, src, dst, fmt)
    if stream is None:
        return None

    # A known stream changed its payload format: track it as a new stream.
    if stream.is_complete() and stream.fmtcode != fmt:
        stream = _new_stream(stream.media, dst, src, fmt)
        _owner_call(stream).add_stream(stream)

    if not stream.is_complete():
        stream.complete(src)
        stream.set_format(fmt)
        call = _owner_call(stream)
        # Endpoints often answer to the sender's address rather than the one
        # in its SDP, so create the opposite direction on the fly.
        reverse = find_call_stream(call, stream.dst, stream.src)
        if reverse is None:
            call.add_stream(_new_stream(stream.media, stream.src, stream.dst, fmt))
        elif reverse.src.port and stream.src != reverse.src:
            if find_call_exact_stream(call, stream.dst, stream.src) is None:
                call.add_stream(_new_stream(stream.media, stream.src, stream.dst, fmt))

    stream.add_packet(packet)
    return stream


def check_packet(packet: Packet, calls: Iterable[Any]) -> RtpStream | None:
    """Match an RTP or RTCP packet to a stream of the given calls.

    Returns the stream that received the packet, or None when the packet is
    neither RTP nor RTCP or belongs to no known stream.
    """
    payload = packet.payload or b""
    calls = list(calls)
    if data_is_rtp(payload):
        return _check_rtp(packet, payload, calls)
    if data_is_rtcp(payload):
        stream = find_rtcp_stream(calls, packet.src, packet.dst)
        if stream is None:
            return None
        parse_rtcp(payload, stream.rtcpinfo)
        stream.complete(packet.src)
        stream.add_packet(packet)
        return stream
    return None