"""SIP request methods, response codes and transport names."""

from __future__ import annotations

import re
from enum import IntEnum

from sipscope.packet import PacketType


class SipMethod(IntEnum):
    """SIP request methods; response codes are plain integers from 100."""

    REGISTER = 1
    INVITE = 2
    SUBSCRIBE = 3
    NOTIFY = 4
    OPTIONS = 5
    PUBLISH = 6
    INFO = 7
    REFER = 8
    UPDATE = 9
    KDMQ = 10
    MESSAGE = 11
    CANCEL = 12
    BYE = 13
    ACK = 14
    PRACK = 15


_SIP_CODES: dict[int, str] = {
    SipMethod.REGISTER: "REGISTER",
    SipMethod.INVITE: "INVITE",
    SipMethod.SUBSCRIBE: "SUBSCRIBE",
    SipMethod.NOTIFY: "NOTIFY",
    SipMethod.OPTIONS: "OPTIONS",
    SipMethod.PUBLISH: "PUBLISH",
    SipMethod.KDMQ: "KDMQ",
    SipMethod.MESSAGE: "MESSAGE",
    SipMethod.CANCEL: "CANCEL",
    SipMethod.BYE: "BYE",
    SipMethod.ACK: "ACK",
    SipMethod.PRACK: "PRACK",
    SipMethod.INFO: "INFO",
    SipMethod.REFER: "REFER",
    SipMethod.UPDATE: "UPDATE",
    100: "100 Trying",
    180: "180 Ringing",
    181: "181 Call is Being Forwarded",
    182: "182 Queued",
    183: "183 Session Progress",
    199: "199 Early Dialog Terminated",
    200: "200 OK",
    202: "202 Accepted",
    204: "204 No Notification",
    300: "300 Multiple Choices",
    301: "301 Moved Permanently",
    302: "302 Moved Temporarily",
    305: "305 Use Proxy",
    380: "380 Alternative Service",
    400: "400 Bad Request",
    401: "401 Unauthorized",
    402: "402 Payment Required",
    403: "403 Forbidden",
    404: "404 Not Found",
    405: "405 Method Not Allowed",
    406: "406 Not Acceptable",
    407: "407 Proxy Authentication Required",
    408: "408 Request Timeout",
    409: "409 Conflict",
    410: "410 Gone",
    411: "411 Length Required",
    412: "412 Conditional Request Failed",
    413: "413 Request Entity Too Large",
    414: "414 Request-URI Too Long",
    415: "415 Unsupported Media Type",
    416: "416 Unsupported URI Scheme",
    417: "417 Unknown Resource-Priority",
    420: "420 Bad Extension",
    421: "421 Extension Required",
    422: "422 Session Interval Too Small",
    423: "423 Interval Too Brief",
    424: "424 Bad Location Information",
    428: "428 Use Identity Header",
    429: "429 Provide Referrer Identity",
    430: "430 Flow Failed",
    433: "433 Anonymity Disallowed",
    436: "436 Bad Identity-Info",
    437: "437 Unsupported Certificate",
    438: "438 Invalid Identity Header",
    439: "439 First Hop Lacks Outbound Support",
    470: "470 Consent Needed",
    480: "480 Temporarily Unavailable",
    481: "481 Call/Transaction Does Not Exist",
    482: "482 Loop Detected.",
    483: "483 Too Many Hops",
    484: "484 Address Incomplete",
    485: "485 Ambiguous",
    486: "486 Busy Here",
    487: "487 Request Terminated",
    488: "488 Not Acceptable Here",
    489: "489 Bad Event",
    491: "491 Request Pending",
    493: "493 Undecipherable",
    494: "494 Security Agreement Required",
    500: "500 Server Internal Error",
    501: "501 Not Implemented",
    502: "502 Bad Gateway",
    503: "503 Service Unavailable",
    504: "504 Server Time-out",
    505: "505 Version Not Supported",
    513: "513 Message Too Large",
    580: "580 Precondition Failure",
    600: "600 Busy Everywhere",
    603: "603 Decline",
    604: "604 Does Not Exist Anywhere",
    606: "606 Not Acceptable",
}

_CODES_BY_TEXT: dict[str, int] = {text: code for code, text in _SIP_CODES.items()}

_TRANSPORTS: dict[int, str] = {
    PacketType.SIP_UDP: "UDP",
    PacketType.SIP_TCP: "TCP",
    PacketType.SIP_TLS: "TLS",
    PacketType.SIP_WS: "WS",
    PacketType.SIP_WSS: "WSS",
}

_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")


def _atoi(text: str) -> int:
    """Parse a leading integer the lenient way, 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def method_str(code: int) -> str | None:
    """Return the text of a method or standard response code, or None."""
    return _SIP_CODES.get(code)


def method_from_str(text: str) -> int:
    """Return the method id or response code for a request/response text.

    Known texts map to their code; otherwise the leading number of the
    text is returned (0 when there is none).
    """
    code = _CODES_BY_TEXT.get(text)
    if code is not None:
        return int(code)
    return _atoi(text)


def transport_str(transport: int) -> str:
    """Return the name of a SIP transport, or an empty string."""
    return _TRANSPORTS.get(transport, "")