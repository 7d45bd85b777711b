import pytest

from sipscope.packet import Address, FrameHeader, Packet
from sipscope.sip import CallStats, SipCallList, SortOptions
from sipscope.sip_attr import SipAttr
from sipscope.sip_call import CallState
from sipscope.sip_parser import MAX_SIP_PAYLOAD
from sipscope.sipcodes import SipMethod
from sipscope.util import Timeval, timeval_to_date, timeval_to_time

A = ("10.0.0.1", 5060)
B = ("10.0.0.2", 5060)


def sip_payload(first_line, callid="abc123", cseq="1 INVITE", from_user="alice", extra=(), body=""):
    headers = [
        first_line,
        "Via: SIP/2.0/UDP 10.0.0.1:5060",
        f"From: <sip:{from_user}@example.com>;tag=1",
        "To: <sip:bob@example.com>",
        f"Call-ID: {callid}",
        f"CSeq: {cseq}",
        *extra,
        f"Content-Length: {len(body)}",
    ]
    return ("\r\n".join(headers) + "\r\n\r\n" + body).encode()


def make_packet(payload, src=A, dst=B, sec=1000):
    packet = Packet(4, 17, Address(*src), Address(*dst), 0)
    packet.set_payload(payload)
    packet.add_frame(FrameHeader(ts=Timeval(sec, 0), caplen=len(payload)), payload)
    return packet


def invite(callid="abc123", **kwargs):
    return make_packet(sip_payload("INVITE sip:bob@example.com SIP/2.0", callid=callid, **kwargs))


def test_invite_creates_call():
    calls = SipCallList()
    msg = calls.check_packet(invite())
    assert msg.reqresp == SipMethod.INVITE
    assert calls.count() == 1
    call = calls.find_by_callid("abc123")
    assert call is msg.call
    assert call.index == 1
    assert call.state == CallState.CALLSETUP
    assert msg.sip_from == "alice@example.com"
    assert calls.is_call_active(call)
    assert calls.has_changed() is True
    assert calls.has_changed() is False


def test_full_call_flow():
    calls = SipCallList()
    calls.check_packet(invite())
    ok = calls.check_packet(make_packet(sip_payload("SIP/2.0 200 OK"), src=B, dst=A))
    assert ok.reqresp == 200
    assert ok.resp_str is None
    calls.check_packet(make_packet(sip_payload("ACK sip:bob@example.com SIP/2.0", cseq="1 ACK")))
    call = calls.find_by_callid("abc123")
    assert call.state == CallState.INCALL
    bye = sip_payload(
        "BYE sip:bob@example.com SIP/2.0",
        cseq="2 BYE",
        extra=('Reason: SIP;cause=200;text="Call completed"',),
    )
    calls.check_packet(make_packet(bye))
    assert call.state == CallState.COMPLETED
    assert call.msg_count() == 4
    assert call.reasontxt == "Call completed"
    assert not calls.is_call_active(call)
    assert calls.active_calls() == []


def test_non_sip_payload_is_ignored():
    calls = SipCallList()
    assert calls.check_packet(make_packet(b"hello world\r\n")) is None
    assert calls.count() == 0


def test_oversized_payload_is_ignored():
    calls = SipCallList()
    payload = sip_payload("INVITE sip:bob@example.com SIP/2.0", body="x" * (MAX_SIP_PAYLOAD + 1))
    assert calls.check_packet(make_packet(payload)) is None
    assert calls.count() == 0


def test_only_calls_skips_register():
    calls = SipCallList(only_calls=True)
    register = make_packet(sip_payload("REGISTER sip:example.com SIP/2.0", cseq="1 REGISTER"))
    assert calls.check_packet(register) is None
    assert calls.check_packet(invite()) is not None
    assert calls.count() == 1


def test_no_incomplete_skips_response_first():
    calls = SipCallList(no_incomplete=True)
    assert calls.check_packet(make_packet(sip_payload("SIP/2.0 200 OK"))) is None
    assert calls.count() == 0


def test_rotation_removes_oldest():
    calls = SipCallList(limit=2)
    for callid in ("c1", "c2", "c3"):
        calls.check_packet(invite(callid=callid))
    assert calls.count() == 2
    assert calls.count_unrotated() == 3
    assert calls.find_by_callid("c1") is None
    assert [c.callid for c in calls] == ["c2", "c3"]


def test_rotation_skips_locked_calls():
    calls = SipCallList(limit=2)
    calls.check_packet(invite(callid="c1"))
    calls.check_packet(invite(callid="c2"))
    calls.find_by_callid("c1").locked = True
    calls.check_packet(invite(callid="c3"))
    assert [c.callid for c in calls] == ["c1", "c3"]


def test_match_expression():
    calls = SipCallList()
    calls.set_match_expression("alice", False, False)
    assert calls.check_packet(invite(callid="c1", from_user="carol")) is None
    assert calls.check_packet(invite(callid="c2")) is not None
    assert calls.match_expr == "alice"


def test_match_expression_inverted_and_insensitive():
    calls = SipCallList()
    calls.set_match_expression("ALICE", True, True)
    assert calls.check_match_expression(sip_payload("INVITE sip:x@example.com SIP/2.0")) is False
    assert calls.check_match_expression(b"nothing here") is True


def test_invalid_match_expression_raises():
    calls = SipCallList()
    with pytest.raises(ValueError):
        calls.set_match_expression("(", False, False)
    assert calls.check_match_expression(b"anything") is True


def test_sorting():
    calls = SipCallList(sort=SortOptions(SipAttr.CALLINDEX, asc=False))
    for callid in ("c1", "c2", "c3"):
        calls.check_packet(invite(callid=callid))
    indexes = [c.index for c in calls]
    assert len(indexes) == 3
    assert indexes == sorted(indexes, reverse=True)
    calls.set_sort_options(SortOptions(SipAttr.CALLINDEX, asc=True))
    indexes = [c.index for c in calls]
    assert indexes == sorted(indexes)


def test_stats_and_clear_soft():
    calls = SipCallList()
    for callid in ("c1", "c2", "c3"):
        calls.check_packet(invite(callid=callid))
    keep = lambda call: call.callid != "c2"  # noqa: E731
    assert calls.stats(keep) == CallStats(total=3, displayed=2)
    assert calls.stats() == CallStats(total=3, displayed=3)
    calls.clear_soft(keep)
    assert [c.callid for c in calls] == ["c1", "c3"]
    assert calls.find_by_callid("c2") is None
    assert all(call.callid != "c2" for call in calls.active_calls())


def test_clear_and_find_by_index():
    calls = SipCallList()
    calls.check_packet(invite())
    assert calls.find_by_index(0).callid == "abc123"
    assert calls.find_by_index(1) is None
    assert calls.find_by_index(-1) is None
    calls.clear()
    assert calls.count() == 0
    assert calls.find_by_callid("abc123") is None
    assert calls.active_calls() == []


def test_xcallid_relates_calls():
    calls = SipCallList()
    calls.check_packet(invite(callid="parent"))
    child_msg = calls.check_packet(invite(callid="child", extra=("X-Call-ID: parent",)))
    parent = calls.find_by_callid("parent")
    assert child_msg.call.xcallid == "parent"
    assert parent.xcalls == [child_msg.call]


def test_retransmission_detected():
    calls = SipCallList()
    first = calls.check_packet(invite())
    second = calls.check_packet(invite())
    assert second.retrans is first
    assert first.retrans is None


def test_msg_header_with_aliases():
    calls = SipCallList()
    msg = calls.check_packet(invite())
    ts = Timeval(1000, 0)
    plain = calls.msg_header(msg)
    assert plain == f"{timeval_to_date(ts)} {timeval_to_time(ts)} 10.0.0.1:5060 -> 10.0.0.2:5060"
    aliased = calls.msg_header(msg, {"10.0.0.1:5060": "alice"})
    assert aliased.endswith("alice -> 10.0.0.2:5060")