from types import SimpleNamespace

import pytest

from sipscope.packet import Address, Packet
from sipscope.sip_msg import SipMessage
from sipscope.sip_parser import MAX_SIP_PAYLOAD, SipParser, ValidateResult
from sipscope.sipcodes import SipMethod

BODY = "v=0\r\n"

INVITE = (
    "INVITE sip:bob@example.com SIP/2.0\r\n"
    "From: <sip:alice@example.com>;tag=1\r\n"
    "To: <sip:bob@example.com>\r\n"
    "Call-ID: abc123@example.com\r\n"
    "X-CID: parent42\r\n"
    "CSeq: 7 INVITE\r\n"
    f"Content-Length: {len(BODY)}\r\n"
    "\r\n"
    f"{BODY}"
)

OK = (
    "SIP/2.0 200 OK\r\n"
    "Call-ID: abc123@example.com\r\n"
    "CSeq: 7 INVITE\r\n"
    "Content-Length: 0\r\n"
    "\r\n"
)


@pytest.fixture
def parser():
    return SipParser()


def make_packet(payload):
    packet = Packet(4, 17, Address("10.0.0.1", 5060), Address("10.0.0.2", 5060), 0)
    packet.set_payload(payload.encode("latin-1") if isinstance(payload, str) else payload)
    return packet


def test_get_callid(parser):
    assert parser.get_callid(INVITE) == "abc123@example.com"
    assert parser.get_callid(INVITE.encode()) == "abc123@example.com"


def test_get_callid_compact_form(parser):
    assert parser.get_callid("i: short@example.com\r\n") == "short@example.com"


def test_get_callid_missing(parser):
    assert parser.get_callid("From: x\r\n") == ""


def test_get_xcallid_default_headers(parser):
    assert parser.get_xcallid(INVITE) == "parent42"


def test_get_xcallid_custom_header():
    parser = SipParser("X-Related")
    assert parser.get_xcallid("X-Related: rel@example.com\r\n") == "rel@example.com"
    assert parser.get_xcallid(INVITE) == ""


def test_get_xcallid_invalid_regex_falls_back():
    parser = SipParser("(")
    assert parser.get_xcallid(INVITE) == "parent42"


def test_validate_empty_payload(parser):
    assert parser.validate_packet(make_packet(b"")) is ValidateResult.NOT_SIP


def test_validate_too_large(parser):
    payload = "SIP/2.0 200 OK\r\n" + "x" * MAX_SIP_PAYLOAD
    assert parser.validate_packet(make_packet(payload)) is ValidateResult.NOT_SIP


def test_validate_not_sip(parser):
    assert parser.validate_packet(make_packet("hello world\r\n")) is ValidateResult.NOT_SIP


def test_validate_missing_content_length(parser):
    payload = "SIP/2.0 200 OK\r\nCall-ID: a\r\n\r\n"
    assert parser.validate_packet(make_packet(payload)) is ValidateResult.PARTIAL_SIP


def test_validate_body_incomplete(parser):
    truncated = INVITE[: -len(BODY)]
    assert parser.validate_packet(make_packet(truncated)) is ValidateResult.PARTIAL_SIP


def test_validate_complete(parser):
    packet = make_packet(INVITE)
    assert parser.validate_packet(packet) is ValidateResult.COMPLETE_SIP
    assert packet.payload == INVITE.encode()


def test_validate_multiple_trims_payload(parser):
    packet = make_packet(INVITE + OK)
    assert parser.validate_packet(packet) is ValidateResult.MULTIPLE_SIP
    assert packet.payload == INVITE.encode()
    assert parser.validate_packet(packet) is ValidateResult.COMPLETE_SIP


def test_reqresp_request(parser):
    msg = SipMessage(make_packet(INVITE))
    assert parser.get_msg_reqresp(msg, INVITE) == SipMethod.INVITE
    assert msg.cseq == 7
    assert msg.is_request()
    assert msg.resp_str is None


def test_reqresp_standard_response(parser):
    msg = SipMessage(make_packet(OK))
    assert parser.get_msg_reqresp(msg, OK) == 200
    assert msg.resp_str is None
    assert msg.reqresp_str() == "200 OK"


def test_reqresp_nonstandard_response_text(parser):
    payload = OK.replace("200 OK", "200 Fine")
    msg = SipMessage(make_packet(payload))
    assert parser.get_msg_reqresp(msg, payload) == 200
    assert msg.resp_str == "200 Fine"


def test_reqresp_already_parsed_is_kept(parser):
    msg = SipMessage(make_packet(OK))
    msg.reqresp = SipMethod.BYE
    assert parser.get_msg_reqresp(msg, OK) == SipMethod.BYE
    assert msg.cseq == 0


def test_parse_msg_payload(parser):
    msg = SipMessage(make_packet(INVITE))
    parser.parse_msg_payload(msg, INVITE)
    assert msg.sip_from == "alice@example.com"
    assert msg.sip_to == "bob@example.com"


def test_parse_msg_payload_malformed(parser):
    msg = SipMessage(make_packet("SIP/2.0 200 OK\r\n"))
    parser.parse_msg_payload(msg, "SIP/2.0 200 OK\r\n")
    assert msg.sip_from == "<malformed>"
    assert msg.sip_to == "<malformed>"


def test_parse_msg_uses_own_payload(parser):
    msg = SipMessage(make_packet(INVITE))
    assert parser.parse_msg(msg) is msg
    assert msg.sip_from == "alice@example.com"
    assert parser.parse_msg(None) is None


def test_parse_msg_skips_parsed_message(parser):
    msg = SipMessage(make_packet(INVITE))
    msg.cseq = 7
    parser.parse_msg(msg)
    assert msg.sip_from is None


def test_parse_extra_headers(parser):
    payload = (
        "SIP/2.0 486 Busy Here\r\n"
        'Reason: Q.850;cause=17;text="User busy"\r\n'
        'Warning: 399 host.example.com "busy"\r\n'
    )
    msg = SipMessage(make_packet(payload))
    msg.call = SimpleNamespace(reasontxt=None, warning=0)
    parser.parse_extra_headers(msg, payload)
    assert msg.call.reasontxt == "User busy"
    assert msg.call.warning == 399


def test_parse_extra_headers_absent(parser):
    msg = SipMessage(make_packet(OK))
    msg.call = SimpleNamespace(reasontxt=None, warning=0)
    parser.parse_extra_headers(msg, OK)
    assert msg.call.reasontxt is None
    assert msg.call.warning == 0