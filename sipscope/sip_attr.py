"""Static descriptions of the attributes that calls and messages expose."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

#: Longest attribute value kept when formatting message attributes.
SIP_ATTR_MAXLEN = 255


class SipAttr(IntEnum):
    """Attributes a call or message can have."""

    CALLINDEX = 0
    SIPFROM = 1
    SIPFROMUSER = 2
    SIPTO = 3
    SIPTOUSER = 4
    SRC = 5
    DST = 6
    CALLID = 7
    XCALLID = 8
    DATE = 9
    TIME = 10
    METHOD = 11
    TRANSPORT = 12
    MSGCNT = 13
    CALLSTATE = 14
    CONVDUR = 15
    TOTALDUR = 16
    REASON_TXT = 17
    WARNING = 18


@dataclass(frozen=True)
class AttrHeader:
    """Name, column title, description and display width of an attribute."""

    id: SipAttr
    name: str
    title: str | None
    desc: str
    dwidth: int


_HEADERS: dict[SipAttr, AttrHeader] = {
    header.id: header
    for header in (
        AttrHeader(SipAttr.CALLINDEX, "index", "Idx", "Call Index", 4),
        AttrHeader(SipAttr.SIPFROM, "sipfrom", None, "SIP From", 25),
        AttrHeader(SipAttr.SIPFROMUSER, "sipfromuser", None, "SIP From User", 20),
        AttrHeader(SipAttr.SIPTO, "sipto", None, "SIP To", 25),
        AttrHeader(SipAttr.SIPTOUSER, "siptouser", None, "SIP To User", 20),
        AttrHeader(SipAttr.SRC, "src", None, "Source", 22),
        AttrHeader(SipAttr.DST, "dst", None, "Destination", 22),
        AttrHeader(SipAttr.CALLID, "callid", None, "Call-ID", 50),
        AttrHeader(SipAttr.XCALLID, "xcallid", None, "X-Call-ID", 50),
        AttrHeader(SipAttr.DATE, "date", None, "Date", 10),
        AttrHeader(SipAttr.TIME, "time", None, "Time", 8),
        AttrHeader(SipAttr.METHOD, "method", None, "Method", 10),
        AttrHeader(SipAttr.TRANSPORT, "transport", "Trans", "Transport", 3),
        AttrHeader(SipAttr.MSGCNT, "msgcnt", "Msgs", "Message Count", 5),
        AttrHeader(SipAttr.CALLSTATE, "state", None, "Call State", 10),
        AttrHeader(SipAttr.CONVDUR, "convdur", "ConvDur", "Conversation Duration", 7),
        AttrHeader(SipAttr.TOTALDUR, "totaldur", "TotalDur", "Total Duration", 8),
        AttrHeader(SipAttr.REASON_TXT, "reason", "Reason Text", "Reason Text", 25),
        AttrHeader(SipAttr.WARNING, "warning", "Warning", "Warning code", 4),
    )
}


def header(attr_id: int) -> AttrHeader:
    """Return the header of an attribute; ValueError for an unknown id."""
    return _HEADERS[SipAttr(attr_id)]


def description(attr_id: int) -> str:
    """Return the attribute's description."""
    return header(attr_id).desc


def title(attr_id: int) -> str:
    """Return the attribute's column title, falling back to its description."""
    hdr = header(attr_id)
    return hdr.title if hdr.title else hdr.desc


def name(attr_id: int) -> str:
    """Return the attribute's name."""
    return header(attr_id).name


def width(attr_id: int) -> int:
    """Return the attribute's preferred display width."""
    return header(attr_id).dwidth


def from_name(attr_name: str) -> SipAttr | None:
    """Return the attribute with the given name (case-insensitive), or None."""
    wanted = attr_name.lower()
    for hdr in _HEADERS.values():
        if hdr.name.lower() == wanted:
            return hdr.id
    return None