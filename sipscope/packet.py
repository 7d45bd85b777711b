"""Captured packets and the frames they were assembled from."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum

from sipscope.util import Timeval


class PacketType(IntEnum):
    """Kind of payload a stored packet carries."""

    SIP_UDP = 0
    SIP_TCP = 1
    SIP_TLS = 2
    SIP_WS = 3
    SIP_WSS = 4
    RTP = 5
    RTCP = 6


@dataclass(frozen=True)
class Address:
    """An IP address with a port."""

    ip: str = ""
    port: int = 0


@dataclass(frozen=True)
class FrameHeader:
    """Capture header of one frame."""

    ts: Timeval = field(default_factory=Timeval)
    caplen: int = 0
    length: int = 0


@dataclass
class Frame:
    """One captured frame: its header and captured bytes."""

    header: FrameHeader
    data: bytes | None


class Packet:
    """A packet, possibly reassembled from several frames."""

    def __init__(self, ip_version: int, proto: int, src: Address, dst: Address, ip_id: int):
        self.ip_version = ip_version
        self.proto = proto
        self.type = PacketType.SIP_UDP
        self.src = src
        self.dst = dst
        self.ip_id = ip_id
        self.ip_cap_len = 0
        self.ip_exp_len = 0
        self.tcp_seq = 0
        self.payload: bytes | None = None
        self.frames: list[Frame] = []

    @property
    def payload_len(self) -> int:
        return len(self.payload) if self.payload is not None else 0

    def clone(self) -> Packet:
        """Return a deep copy of the packet's addressing and frames."""
        copy = Packet(self.ip_version, self.proto, self.src, self.dst, self.ip_id)
        copy.tcp_seq = self.tcp_seq
        copy.type = self.type
        for frame in self.frames:
            copy.add_frame(frame.header, frame.data)
        return copy

    def set_transport_data(self, sport: int, dport: int) -> Packet:
        """Set the source and destination ports and return the packet."""
        self.src = replace(self.src, port=sport)
        self.dst = replace(self.dst, port=dport)
        return self

    def add_frame(self, header: FrameHeader, data: bytes | None) -> Frame:
        """Append a frame holding the first caplen bytes of data."""
        content = None if data is None else bytes(data[: header.caplen])
        frame = Frame(header=header, data=content)
        self.frames.append(frame)
        return frame

    def free_frames(self) -> None:
        """Drop the captured bytes of every frame, keeping their headers."""
        for frame in self.frames:
            frame.data = None

    def set_payload(self, payload: bytes | None) -> None:
        """Replace the payload; None clears it."""
        self.payload = None if payload is None else bytes(payload)

    def time(self) -> Timeval:
        """Return the timestamp of the first frame, or zero without frames."""
        if not self.frames:
            return Timeval()
        return self.frames[0].header.ts