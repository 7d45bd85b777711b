"""SIP messages and the SDP media descriptions they carry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sipscope.packet import Address, Packet
from sipscope.sip_attr import SIP_ATTR_MAXLEN, SipAttr, name as attr_name
from sipscope.sipcodes import method_str
from sipscope.util import Timeval, timeval_is_older, timeval_to_date, timeval_to_time


@dataclass(eq=False)
class SdpMedia:
    """One SDP media description of a message."""

    msg: SipMessage | None = None
    media_type: str = ""
    address: Address = field(default_factory=Address)
    fmtcode: int = 0
    formats: list[tuple[int, str]] = field(default_factory=list)

    def add_format(self, code: int, format_name: str) -> None:
        """Record the name of a payload format code."""
        self.formats.append((code, format_name))

    def get_format(self, code: int) -> str | None:
        """Return the name of a payload format code, or None."""
        for fmt_code, fmt_name in self.formats:
            if fmt_code == code:
                return fmt_name
        return None


class SipMessage:
    """A single SIP message within a dialog."""

    def __init__(self, packet: Packet | None):
        self.packet = packet
        self.reqresp = 0
        self.resp_str: str | None = None
        self.cseq = 0
        self.sip_from: str | None = None
        self.sip_to: str | None = None
        self.medias: list[SdpMedia] = []
        self.index = 0
        self.call: Any = None
        self.retrans: SipMessage | None = None

    def is_request(self) -> bool:
        """Return True for requests, False for responses."""
        return self.reqresp < 100

    def has_sdp(self) -> bool:
        return bool(self.medias)

    def media_count(self) -> int:
        return len(self.medias)

    def add_media(self, media: SdpMedia) -> None:
        self.medias.append(media)

    def payload(self) -> str:
        """Return the packet payload as text (empty without payload)."""
        if self.packet is None or self.packet.payload is None:
            return ""
        return self.packet.payload.decode("latin-1")

    def time(self) -> Timeval:
        """Return the timestamp of the message's first frame."""
        if self.packet is None:
            return Timeval()
        return self.packet.time()

    def reqresp_str(self) -> str | None:
        """Return the non-standard response text, or the standard one."""
        if self.resp_str:
            return self.resp_str
        return method_str(self.reqresp)

    def _address(self, addr: Address) -> str:
        if self.packet.ip_version == 6:
            return f"[{addr.ip}]:{addr.port}"
        return f"{addr.ip}:{addr.port}"

    @staticmethod
    def _user(uri: str | None) -> str:
        if uri and "@" in uri:
            return uri.split("@", 1)[0]
        return ""

    def attribute(self, attr_id: int) -> str | None:
        """Return a message attribute as text, or None when it is empty.

        Raises ValueError for attributes that messages do not hold.
        """
        attr = SipAttr(attr_id)
        if attr is SipAttr.SRC:
            value = self._address(self.packet.src)
        elif attr is SipAttr.DST:
            value = self._address(self.packet.dst)
        elif attr is SipAttr.METHOD:
            value = (self.reqresp_str() or "")[:SIP_ATTR_MAXLEN]
        elif attr is SipAttr.SIPFROM:
            value = (self.sip_from or "")[:SIP_ATTR_MAXLEN]
        elif attr is SipAttr.SIPTO:
            value = (self.sip_to or "")[:SIP_ATTR_MAXLEN]
        elif attr is SipAttr.SIPFROMUSER:
            value = self._user(self.sip_from)
        elif attr is SipAttr.SIPTOUSER:
            value = self._user(self.sip_to)
        elif attr is SipAttr.DATE:
            value = timeval_to_date(self.time())
        elif attr is SipAttr.TIME:
            value = timeval_to_time(self.time())
        else:
            raise ValueError(f"Unhandled attribute {attr_name(attr)} ({int(attr)})")
        return value or None

    def is_older(self, other: SipMessage | None) -> bool:
        """Return True if this message is at or after the other one."""
        if other is None:
            return True
        if other is self:
            return False
        return timeval_is_older(self.time(), other.time())