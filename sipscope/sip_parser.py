"""Regular-expression based parsing of SIP message payloads."""

from __future__ import annotations

import re
import sys
from enum import IntEnum
from typing import Any

from sipscope.packet import Packet
from sipscope.sip_attr import SIP_ATTR_MAXLEN
from sipscope.sip_msg import SipMessage
from sipscope.sipcodes import method_from_str, method_str

#: Largest payload accepted as a SIP message.
MAX_SIP_PAYLOAD = 10240

DEFAULT_XCID_HEADERS = "X-Call-ID|X-CID"

_MALFORMED = "<malformed>"


class ValidateResult(IntEnum):
    """Outcome of checking whether a payload holds a whole SIP message."""

    NOT_SIP = -1
    PARTIAL_SIP = 0
    COMPLETE_SIP = 1
    MULTIPLE_SIP = 2


def _text(payload: str | bytes | None) -> str:
    """Return the payload as text, up to its first NUL character."""
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        payload = bytes(payload).decode("latin-1")
    return payload.split("\x00", 1)[0]


def _line_re(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE | re.MULTILINE)


def _start_re(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE | re.DOTALL)


class SipParser:
    """Extracts Call-IDs, request/response codes and headers from SIP payloads."""

    def __init__(self, xcid_headers: str = DEFAULT_XCID_HEADERS):
        self.reg_method = _start_re(r"\A([a-zA-Z]+) [a-zA-Z]+:.* SIP/2.0[ ]*\r")
        self.reg_callid = _line_re(r"^(Call-ID|i):[ ]*([^ \n]+)[ ]*\r$")
        self.reg_xcallid = self._compile_xcallid(xcid_headers)
        self.reg_response = _start_re(r"\ASIP/2.0[ ]*(([0-9]{3}) [^\r]*)[ ]*\r")
        self.reg_cseq = _line_re(r"^CSeq:[ ]*([0-9]{1,10}) .+\r$")
        self.reg_from = _line_re(r"^(From|f):[ ]*[^:\n]*:(([^@>\n]+)@?[^\r>;\n]+)")
        self.reg_to = _line_re(r"^(To|t):[ ]*[^:\n]*:(([^@>\n]+)@?[^\r>;\n]+)")
        self.reg_valid = _start_re(r"\A([A-Z]+ [a-zA-Z]+:|SIP/2.0 [0-9]{3})")
        self.reg_cl = _line_re(r"^(Content-Length|l):[ ]*([0-9]+)[ ]*\r$")
        self.reg_body = re.compile(r"\r\n\r\n(.*)", re.IGNORECASE | re.DOTALL)
        self.reg_reason = _line_re(r'Reason:[ ]*[^\r\n]*;text="([^\r\n]+)"')
        self.reg_warning = _line_re(r"Warning:[ ]*([0-9]*)")

    @staticmethod
    def _compile_xcallid(headers: str) -> re.Pattern[str]:
        if len(headers) + 22 >= SIP_ATTR_MAXLEN:
            print("sip.xcid setting too long, using default.", file=sys.stderr)
            headers = DEFAULT_XCID_HEADERS
        try:
            return _line_re(rf"^({headers}):[ ]*([^ \n]+)[ ]*\r$")
        except re.error as exc:
            print(
                f"sip.xcid setting produces regex compilation error: {exc} "
                "using default value instead",
                file=sys.stderr,
            )
            return _line_re(rf"^({DEFAULT_XCID_HEADERS}):[ ]*([^ \n]+)[ ]*\r$")

    def get_callid(self, payload: str | bytes) -> str:
        """Return the Call-ID header value, or an empty string."""
        match = self.reg_callid.search(_text(payload))
        return match.group(2) if match else ""

    def get_xcallid(self, payload: str | bytes) -> str:
        """Return the X-Call-ID (or configured) header value, or an empty string."""
        match = self.reg_xcallid.search(_text(payload))
        return match.group(2) if match else ""

    def validate_packet(self, packet: Packet) -> ValidateResult:
        """Check whether the packet payload holds a complete SIP message.

        When the payload holds more than one message, the packet payload is
        cut down to the first one and MULTIPLE_SIP is returned.
        """
        raw = packet.payload or b""
        if not raw or len(raw) > MAX_SIP_PAYLOAD:
            return ValidateResult.NOT_SIP
        text = _text(raw)

        if not self.reg_valid.search(text):
            return ValidateResult.NOT_SIP

        cl_match = self.reg_cl.search(text)
        if not cl_match:
            return ValidateResult.PARTIAL_SIP
        content_len = int(cl_match.group(2))

        body_match = self.reg_body.search(text)
        if not body_match:
            return ValidateResult.PARTIAL_SIP
        body_start = body_match.start(1)
        bodylen = len(body_match.group(1))

        if content_len > bodylen:
            return ValidateResult.PARTIAL_SIP

        if content_len < bodylen:
            end = body_start + content_len
            if text[end - 1] != "\n" or text[end - 2] != "\r":
                return ValidateResult.NOT_SIP
            packet.set_payload(raw[:end])
            return ValidateResult.MULTIPLE_SIP

        return ValidateResult.COMPLETE_SIP

    def get_msg_reqresp(self, msg: SipMessage, payload: str | bytes) -> int:
        """Parse the method or response code (and CSeq) into the message.

        Messages that already have a code are left untouched. Returns the
        message's request/response code, 0 when none was found.
        """
        if msg.reqresp:
            return msg.reqresp
        text = _text(payload)
        reqresp = ""
        resp_str = ""

        match = self.reg_method.search(text)
        if match:
            method = match.group(1)
            reqresp = _MALFORMED if len(method) >= SIP_ATTR_MAXLEN else method

        match = self.reg_cseq.search(text)
        if match:
            msg.cseq = int(match.group(1))

        match = self.reg_response.search(text)
        if match:
            full = match.group(1)
            resp_str = _MALFORMED if len(full) >= SIP_ATTR_MAXLEN else full
            reqresp = match.group(2)

        msg.reqresp = method_from_str(reqresp)

        if not msg.is_request():
            resp_def = method_str(msg.reqresp)
            if not resp_def or resp_def != resp_str:
                msg.resp_str = resp_str
        return msg.reqresp

    def parse_msg_payload(self, msg: SipMessage, payload: str | bytes) -> None:
        """Fill the message's From and To URIs from the payload."""
        text = _text(payload)
        match = self.reg_from.search(text)
        msg.sip_from = match.group(2) if match else _MALFORMED
        match = self.reg_to.search(text)
        msg.sip_to = match.group(2) if match else _MALFORMED

    def parse_msg(self, msg: SipMessage | None) -> SipMessage | None:
        """Parse the message's own payload unless it was parsed already."""
        if msg is not None and not msg.cseq:
            self.parse_msg_payload(msg, msg.payload())
        return msg

    def parse_extra_headers(self, msg: SipMessage, payload: str | bytes) -> None:
        """Store Reason text and Warning code of the payload in the message's call."""
        text = _text(payload)
        call: Any = msg.call
        match = self.reg_reason.search(text)
        if match:
            call.reasontxt = match.group(1)
        match = self.reg_warning.search(text)
        if match:
            digits = match.group(1)
            call.warning = int(digits) if digits else 0