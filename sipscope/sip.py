"""The list of captured SIP calls and the processing of SIP packets into it."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping

from sipscope.packet import Packet
from sipscope.sdp import parse_msg_media
from sipscope.sip_attr import SipAttr
from sipscope.sip_call import SipCall, msg_retrans_check
from sipscope.sip_msg import SipMessage
from sipscope.sip_parser import DEFAULT_XCID_HEADERS, MAX_SIP_PAYLOAD, SipParser
from sipscope.sipcodes import SipMethod

CallFilter = Callable[[SipCall], bool]


@dataclass(frozen=True)
class SortOptions:
    """Attribute the call list is sorted by, and the direction."""

    by: SipAttr = SipAttr.CALLINDEX
    asc: bool = True


@dataclass(frozen=True)
class CallStats:
    """Number of stored calls, and how many of them pass the filter."""

    total: int
    displayed: int


def _text(payload: str | bytes | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        payload = bytes(payload).decode("latin-1")
    return payload.split("\x00", 1)[0]


class SipCallList:
    """Stores captured calls, keeps them sorted and tracks active ones."""

    def __init__(
        self,
        limit: int = 20000,
        only_calls: bool = False,
        no_incomplete: bool = False,
        sort: SortOptions | None = None,
        xcid_headers: str = DEFAULT_XCID_HEADERS,
        capture_rtp: bool = False,
    ):
        self.limit = limit
        self.only_calls = only_calls
        self.ignore_incomplete = no_incomplete
        self.sort = sort or SortOptions()
        self.capture_rtp = capture_rtp
        self.parser = SipParser(xcid_headers)
        self.calls: list[SipCall] = []
        self.active: list[SipCall] = []
        self.callids: dict[str, SipCall] = {}
        self.changed = False
        self.last_index = 0
        self.call_count_unrotated = 0
        self.match_expr: str | None = None
        self.match_regex: re.Pattern[str] | None = None
        self.match_invert = False

    def __iter__(self) -> Iterator[SipCall]:
        return iter(list(self.calls))

    def __len__(self) -> int:
        return len(self.calls)

    def active_calls(self) -> list[SipCall]:
        """Return the calls that are being set up or in conversation."""
        return list(self.active)

    def _sorted_position(self, call: SipCall) -> int:
        for pos, prev in reversed(list(enumerate(self.calls))):
            cmp = call.compare(prev, self.sort.by)
            if (self.sort.asc and cmp > 0) or (not self.sort.asc and cmp < 0):
                return pos + 1
        return 0

    def _insert_sorted(self, call: SipCall) -> None:
        self.calls.insert(self._sorted_position(call), call)

    def check_packet(self, packet: Packet) -> SipMessage | None:
        """Turn a packet into a message of a (possibly new) call.

        Returns the message, or None when the packet is not SIP or the
        dialog it starts is not to be stored.
        """
        if packet.payload_len > MAX_SIP_PAYLOAD:
            return None
        payload = _text(packet.payload)

        callid = self.parser.get_callid(payload)
        msg = SipMessage(packet)
        if not self.parser.get_msg_reqresp(msg, payload):
            return None

        newcall = False
        call = self.find_by_callid(callid)
        if call is None:
            if not self.check_match_expression(payload):
                return None
            if self.only_calls and msg.reqresp != SipMethod.INVITE:
                return None
            if self.ignore_incomplete and msg.reqresp > SipMethod.MESSAGE:
                return None
            xcallid = self.parser.get_xcallid(payload)
            if self.limit == self.count():
                self.rotate()
            call = SipCall(callid, xcallid, self.capture_rtp)
            self.callids[call.callid] = call
            self.last_index += 1
            call.index = self.last_index
            newcall = True

        msg.packet = packet

        if call.msg_count() == 0:
            self.parser.parse_msg_payload(msg, payload)
            if call.xcallid:
                parent = self.find_by_callid(call.xcallid)
                if parent is not None:
                    parent.add_xcall(call)

        call.add_message(msg)
        msg_retrans_check(msg)

        if call.is_invite():
            parse_msg_media(msg, payload)
            call.update_state(msg)
            self.parser.parse_extra_headers(msg, payload)
            if call.is_active():
                if not self.is_call_active(call):
                    self.active.append(call)
            elif self.is_call_active(call):
                self.active.remove(call)

        if newcall:
            self._insert_sorted(call)
            self.call_count_unrotated += 1

        self.changed = True
        return msg

    def has_changed(self) -> bool:
        """Return whether the list changed since the last call, and reset the flag."""
        changed = self.changed
        self.changed = False
        return changed

    def count(self) -> int:
        return len(self.calls)

    def count_unrotated(self) -> int:
        """Return how many calls were ever stored, including rotated ones."""
        return self.call_count_unrotated

    def is_call_active(self, call: SipCall) -> bool:
        return any(item is call for item in self.active)

    def stats(self, call_filter: CallFilter | None = None) -> CallStats:
        """Return the total number of calls and how many pass the filter."""
        total = len(self.calls)
        if call_filter is None:
            return CallStats(total, total)
        return CallStats(total, sum(1 for call in self.calls if call_filter(call)))

    def find_by_index(self, index: int) -> SipCall | None:
        """Return the call at a position of the list, or None."""
        if 0 <= index < len(self.calls):
            return self.calls[index]
        return None

    def find_by_callid(self, callid: str) -> SipCall | None:
        return self.callids.get(callid)

    def clear(self) -> None:
        """Remove all calls."""
        self.callids = {}
        self.calls.clear()
        self.active.clear()

    def clear_soft(self, call_filter: CallFilter) -> None:
        """Keep only the calls that pass the filter."""
        self.calls = [call for call in self.calls if call_filter(call)]
        self.active = [call for call in self.active if call_filter(call)]
        self.callids = {call.callid: call for call in self.calls}

    def rotate(self) -> None:
        """Remove the first call of the list that is not locked."""
        victim = next((call for call in self.calls if not call.locked), None)
        if victim is None:
            return
        self.callids.pop(victim.callid, None)
        self.active = [call for call in self.active if call is not victim]
        self.calls = [call for call in self.calls if call is not victim]

    def set_match_expression(self, expr: str | None, insensitive: bool = False, invert: bool = False) -> None:
        """Only store dialogs whose first payload matches expr (or not, if inverted).

        Raises ValueError when the expression does not compile. None clears it.
        """
        if expr is None:
            self.match_expr = None
            self.match_regex = None
            self.match_invert = False
            return
        flags = re.DOTALL | (re.IGNORECASE if insensitive else 0)
        try:
            regex = re.compile(expr, flags)
        except re.error as exc:
            raise ValueError(f"invalid match expression {expr!r}: {exc}") from exc
        self.match_expr = expr
        self.match_regex = regex
        self.match_invert = bool(invert)

    def check_match_expression(self, payload: str | bytes) -> bool:
        """Return True if the payload passes the match expression."""
        if self.match_regex is None:
            return True
        matched = self.match_regex.search(_text(payload)) is not None
        return matched != self.match_invert

    def set_sort_options(self, sort: SortOptions) -> None:
        """Change the sort options and re-sort the list."""
        self.sort = sort
        self.sort_list()

    def sort_list(self) -> None:
        """Sort the call list following the current sort options."""
        calls, self.calls = self.calls, []
        for call in calls:
            self._insert_sorted(call)

    def msg_header(self, msg: SipMessage, aliases: Mapping[str, str] | None = None) -> str:
        """Return 'date time src -> dst' for a message, with optional address aliases."""
        date = msg.attribute(SipAttr.DATE) or ""
        tm = msg.attribute(SipAttr.TIME) or ""
        src = msg.attribute(SipAttr.SRC) or ""
        dst = msg.attribute(SipAttr.DST) or ""
        if aliases is not None:
            src = aliases.get(src, src)
            dst = aliases.get(dst, dst)
        return f"{date} {tm} {src} -> {dst}"