"""Extraction of SDP media descriptions and RTP/RTCP streams from SIP payloads."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Iterable

from sipscope.packet import Address, PacketType
from sipscope.rtp import RtpStream, find_call_stream
from sipscope.sip_msg import SdpMedia, SipMessage

_MEDIA_PREFIX_RE = re.compile(r"m=(\S+)\s*(\d+)")
_MEDIA_RE = re.compile(r"m=(\S+)\s*(\d+)\s*(?:RTP|UDP)/\S+\s*(\d+)")
_CONN_RE = re.compile(r"c=IN IP.\s*(\S+)")
_RTPMAP_RE = re.compile(r"a=rtpmap:\s*(\d+)(?:\s*([^ ]{1,29}))?")
_RTCP_RE = re.compile(r"a=rtcp:\s*(\d+)")

_U16 = 0xFFFF
_U32 = 0xFFFFFFFF


def _text(payload: str | bytes | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        payload = bytes(payload).decode("latin-1")
    return payload.split("\x00", 1)[0]


def _add_streams(call: Any, streams: Iterable[RtpStream | None]) -> None:
    """Add streams to the call unless a stream to the same destination exists."""
    for stream in streams:
        if stream is None:
            continue
        if find_call_stream(call, Address(), stream.dst) is None:
            call.add_stream(stream)


def parse_msg_media(msg: SipMessage, payload: str | bytes) -> None:
    """Parse the SDP of a message, adding its media and the expected streams.

    A retransmitted message shares the media of the original message.
    The message must already belong to a call.
    """
    if msg.retrans is not None:
        msg.medias = msg.retrans.medias
        return

    call = msg.call
    dst = Address()
    media: SdpMedia | None = None
    msg_rtp: RtpStream | None = None
    rtp: RtpStream | None = None
    rtcp: RtpStream | None = None
    fmt_name = ""

    for line in re.split(r"[\r\n]", _text(payload)):
        if line.startswith("m="):
            # The port is taken even when the rest of the line is not RTP media.
            prefix = _MEDIA_PREFIX_RE.match(line)
            if prefix:
                dst = replace(dst, port=int(prefix.group(2)) & _U16)
            match = _MEDIA_RE.match(line)
            if match:
                _add_streams(call, (msg_rtp, rtp, rtcp))
                media = SdpMedia(
                    msg=msg,
                    media_type=match.group(1),
                    address=dst,
                    fmtcode=int(match.group(3)) & _U32,
                )
                msg.add_media(media)
                msg_rtp = RtpStream(media, replace(msg.packet.src, port=dst.port), PacketType.RTP)
                rtp = RtpStream(media, dst, PacketType.RTP)
                rtcp = RtpStream(media, replace(dst, port=(dst.port + 1) & _U16), PacketType.RTCP)

        if line.startswith("c="):
            match = _CONN_RE.match(line)
            if match:
                dst = replace(dst, ip=match.group(1))
                if media is not None:
                    media.address = dst
                    rtp.dst = replace(rtp.dst, ip=dst.ip)
                    rtcp.dst = replace(rtcp.dst, ip=dst.ip)

        if line.startswith("a=rtpmap:") and media is not None:
            match = _RTPMAP_RE.match(line)
            if match:
                if match.group(2):
                    fmt_name = match.group(2)
                media.add_format(int(match.group(1)) & _U32, fmt_name)

        if line.startswith("a=rtcp:") and rtcp is not None:
            match = _RTCP_RE.match(line)
            if match:
                rtcp.dst = replace(rtcp.dst, port=int(match.group(1)) & _U16)

    _add_streams(call, (msg_rtp, rtp, rtcp))