# sipscope

sipscope turns packets that have already been captured into SIP dialogs
and the RTP/RTCP streams those dialogs set up. It is a library. You give
it `Packet` objects. It groups SIP messages into calls by Call-ID and
follows the state of each INVITE dialog. It reads the SDP bodies to learn
which media streams to expect, and it attaches RTP and RTCP packets to
those streams.

## Installation

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install .[test]
pytest
```

## Modules

- `sipscope.packet`: `Packet`, `Address`, `Frame`, `FrameHeader` and
  `PacketType`. A packet holds its source and destination addresses, the
  frames it was assembled from and its payload (`set_payload()`).
  `time()` returns the timestamp of the first frame.
- `sipscope.sip`: `SipCallList`, the store of calls.
  - `check_packet(packet)` returns the parsed `SipMessage`. It returns
    `None` when the packet is not SIP or when the dialog is filtered out.
  - It also has `find_by_callid()`, `find_by_index()`, `count()`,
    `count_unrotated()`, `active_calls()`, `stats()`, `clear()`,
    `clear_soft()`, `rotate()`, `set_match_expression()`,
    `check_match_expression()`, `set_sort_options()`, `sort_list()`,
    `has_changed()` and `msg_header()`.
  - The module also defines `SortOptions` and `CallStats`.
- `sipscope.sip_call`: `SipCall` is one dialog, meaning all messages that
  share a Call-ID. It also holds the call's streams, its `CallState`, and
  the `attribute()` and `compare()` methods used for sorting.
  `call_state_str()` returns the display name of a state.
  `msg_retrans_check()` marks retransmitted messages.
- `sipscope.sip_msg`: `SipMessage` is one request or response, and
  `SdpMedia` is one SDP media description.
- `sipscope.sip_parser`: `SipParser` does the regular-expression parsing
  of payloads. It finds the Call-ID and X-Call-ID, the method or response
  code, CSeq, From/To, Reason and Warning.
  - `validate_packet()` returns a `ValidateResult`. It tells whether a
    reassembled payload holds a complete SIP message, only part of one,
    or several.
- `sipscope.sdp`: `parse_msg_media()` adds a message's SDP media to the
  message, and the expected RTP/RTCP streams to its call.
- `sipscope.rtp`: `RtpStream` and `check_packet(packet, calls)`. The
  function finds the stream of the given calls that an RTP or RTCP packet
  belongs to and counts the packet on it.
- `sipscope.rtp_proto`: `data_is_rtp()`, `data_is_rtcp()`,
  `standard_format()` for static payload types, and `parse_rtcp()`. That
  last function reads the sender packet count from SR reports and VoIP
  metrics from XR reports into an `RtcpInfo`.
- `sipscope.sipcodes`: `SipMethod`, `method_str()`, `method_from_str()`
  and `transport_str()`.
- `sipscope.sip_attr`: `SipAttr` and the name, title, description and
  display width of each attribute.
- `sipscope.util`: `Timeval`, and formatting of dates, times, durations
  and deltas. It also has `strtrim()`, `basename()`, and
  `setup_sigterm_handler()` / `was_sigterm_received()` for noticing
  termination signals.

## Example

```python
from sipscope.packet import Address, Packet
from sipscope.sip import SipCallList
from sipscope.sip_call import call_state_str

calls = SipCallList(limit=20000, only_calls=False, no_incomplete=True)

payload = (
    b"INVITE sip:bob@example.com SIP/2.0\r\n"
    b"From: <sip:alice@example.com>;tag=1\r\n"
    b"To: <sip:bob@example.com>\r\n"
    b"Call-ID: abc123\r\n"
    b"CSeq: 1 INVITE\r\n"
    b"Content-Length: 0\r\n"
    b"\r\n"
)
packet = Packet(4, 17, Address("10.0.0.1", 5060), Address("10.0.0.2", 5060), 1)
packet.set_payload(payload)

msg = calls.check_packet(packet)
call = calls.find_by_callid("abc123")
print(call.msg_count(), call_state_str(call.state))   # 1 CALL SETUP
```

Media packets can then be matched against the stored calls:

```python
from sipscope import rtp

stream = rtp.check_packet(media_packet, calls)   # RtpStream or None
```

## Options

The options are arguments to `SipCallList`:

- `limit`: the most calls to keep. When it is reached, `rotate()` drops
  the first call that is not locked.
- `only_calls`: keep only dialogs that start with an INVITE.
- `no_incomplete`: do not start a dialog from requests after MESSAGE, such
  as CANCEL, BYE or ACK, or from responses.
- `sort`: a `SortOptions`, giving the attribute to sort by and whether the
  order is ascending.
- `xcid_headers`: the header names, separated by `|`, that are read as
  X-Call-ID.
- `capture_rtp`: give each call a list in which RTP packets can be stored.

`set_match_expression(expr, insensitive, invert)` keeps only the new
dialogs whose first payload matches a Python regular expression, or does
not match it when `invert` is set. It raises `ValueError` for an
expression that does not compile.

## What it does not do

sipscope does not capture traffic. It does not read or write pcap files,
and it does not reassemble IP fragments or TCP segments. You hand it
packets that have already been built.

It has no command-line program and no terminal interface. It reads no
configuration files. Address aliases are only used when you pass them as
a mapping to `msg_header()`.