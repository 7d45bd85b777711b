"""Track SIP dialogs and their RTP/RTCP media streams from captured packets."""

__version__ = "0.1.0"