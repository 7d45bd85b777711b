"""RTP/RTCP wire-level helpers: packet classification and RTCP report parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

#: RTP version handled (RFC 1889 / RFC 3550).
RTP_VERSION_RFC1889 = 2
#: Length of the fixed RTP header.
RTP_HDR_LENGTH = 12
#: Length of the RTCP common header.
RTCP_HDR_LENGTH = 4
#: Seconds without packets after which a stream is considered inactive.
STREAM_INACTIVE_SECS = 3

_RTCP_SR_SPC_OFFSET = 20
_RTCP_XR_HDR_LENGTH = 8
_XR_BLK_HDR_LENGTH = 4
_XR_VOIP_LENGTH = 36
_XR_VOIP_LRATE = 8
_XR_VOIP_DRATE = 9
_XR_VOIP_MOSLQ = 26
_XR_VOIP_MOSCQ = 27


class RtcpHeaderType(IntEnum):
    """RTCP packet types."""

    SR = 200
    RR = 201
    SDES = 202
    BYE = 203
    APP = 204
    RTPFB = 205
    PSFB = 206
    XR = 207
    AVB = 208
    RSI = 209
    TOKEN = 210


class RtcpXrBlockType(IntEnum):
    """RTCP extended report block types."""

    LOSS_RLE = 1
    DUP_RLE = 2
    PKT_RXTIMES = 3
    REF_TIME = 4
    DLRR = 5
    STATS_SUMRY = 6
    VOIP_METRCS = 7
    BT_XNQ = 8
    TI_VOIP = 9
    PR_LOSS_RLE = 10
    MC_ACQ = 11
    IDMS = 12


@dataclass(frozen=True)
class RtpEncoding:
    """A static RTP payload type with its encoding name and short format."""

    id: int
    name: str
    format: str


ENCODINGS: tuple[RtpEncoding, ...] = (
    RtpEncoding(0, "PCMU/8000", "g711u"),
    RtpEncoding(3, "GSM/8000", "gsm"),
    RtpEncoding(4, "G723/8000", "g723"),
    RtpEncoding(5, "DVI4/8000", "dvi"),
    RtpEncoding(6, "DVI4/16000", "dvi"),
    RtpEncoding(7, "LPC/8000", "lpc"),
    RtpEncoding(8, "PCMA/8000", "g711a"),
    RtpEncoding(9, "G722/8000", "g722"),
    RtpEncoding(10, "L16/44100", "l16"),
    RtpEncoding(11, "L16/44100", "l16"),
    RtpEncoding(12, "QCELP/8000", "qcelp"),
    RtpEncoding(13, "CN/8000", "cn"),
    RtpEncoding(14, "MPA/90000", "mpa"),
    RtpEncoding(15, "G728/8000", "g728"),
    RtpEncoding(16, "DVI4/11025", "dvi"),
    RtpEncoding(17, "DVI4/22050", "dvi"),
    RtpEncoding(18, "G729/8000", "g729"),
    RtpEncoding(25, "CelB/90000", "celb"),
    RtpEncoding(26, "JPEG/90000", "jpeg"),
    RtpEncoding(28, "nv/90000", "nv"),
    RtpEncoding(31, "H261/90000", "h261"),
    RtpEncoding(32, "MPV/90000", "mpv"),
    RtpEncoding(33, "MP2T/90000", "mp2t"),
    RtpEncoding(34, "H263/90000", "h263"),
)


@dataclass
class RtcpInfo:
    """Figures collected from RTCP reports of a stream."""

    spc: int = 0
    flost: int = 0
    fdiscard: int = 0
    mosl: int = 0
    mosc: int = 0


def _version(octet: int) -> int:
    return octet >> 6


def _payload_type(octet: int) -> int:
    return octet & 0x7F


def _u16(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 2], "big")


def _u32(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 4], "big")


def standard_format(code: int) -> str | None:
    """Return the short format name of a static RTP payload type, or None."""
    return next((enc.format for enc in ENCODINGS if enc.id == code), None)


def data_is_rtp(data: bytes) -> bool:
    """Return True if the data looks like an RTP packet (RFC 5761/5764)."""
    if len(data) < RTP_HDR_LENGTH:
        return False
    pt = _payload_type(data[1])
    return (
        _version(data[0]) == RTP_VERSION_RFC1889
        and 127 < data[0] < 192
        and (pt <= 64 or pt >= 96)
    )


def data_is_rtcp(data: bytes) -> bool:
    """Return True if the data looks like an RTCP packet (RFC 5761/5764)."""
    if len(data) < RTCP_HDR_LENGTH:
        return False
    return (
        _version(data[0]) == RTP_VERSION_RFC1889
        and 127 < data[0] < 192
        and 192 <= data[1] <= 223
    )


def _parse_xr(block: bytes, info: RtcpInfo) -> None:
    xr_len = _u16(block, 2) * 4 + 4
    bsize = _RTCP_XR_HDR_LENGTH
    while bsize < xr_len:
        if bsize + _XR_BLK_HDR_LENGTH > len(block):
            break
        blk_type = block[bsize]
        if blk_type == RtcpXrBlockType.VOIP_METRCS:
            # Metrics are read from the first report block of the packet.
            voip = block[_RTCP_XR_HDR_LENGTH:_RTCP_XR_HDR_LENGTH + _XR_VOIP_LENGTH]
            if len(voip) == _XR_VOIP_LENGTH:
                info.fdiscard = voip[_XR_VOIP_DRATE]
                info.flost = voip[_XR_VOIP_LRATE]
                info.mosl = voip[_XR_VOIP_MOSLQ]
                info.mosc = voip[_XR_VOIP_MOSCQ]
        bsize += _u16(block, bsize + 2) * 4 + 4


def parse_rtcp(payload: bytes, info: RtcpInfo) -> RtcpInfo:
    """Walk the RTCP packets in a (compound) payload, updating info.

    Parsing stops at a truncated or non-version-2 header, and after the
    first packet of a type that is not handled. Returns info.
    """
    data = bytes(payload)
    while data:
        if len(data) < RTCP_HDR_LENGTH:
            break
        if _version(data[0]) != RTP_VERSION_RFC1889:
            break
        length = _u16(data, 2) * 4 + 4
        if length > len(data):
            break
        block = data[:length]
        hdr_type = data[1]
        if hdr_type == RtcpHeaderType.SR:
            if len(block) >= _RTCP_SR_SPC_OFFSET + 4:
                info.spc = _u32(block, _RTCP_SR_SPC_OFFSET)
        elif hdr_type == RtcpHeaderType.XR:
            _parse_xr(block, info)
        elif hdr_type in (
            RtcpHeaderType.RR,
            RtcpHeaderType.SDES,
            RtcpHeaderType.BYE,
            RtcpHeaderType.APP,
            RtcpHeaderType.RTPFB,
            RtcpHeaderType.PSFB,
        ):
            pass
        else:
            break
        data = data[length:]
    return info