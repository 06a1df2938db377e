"""SIP trunk to voice-agent bridge."""

__version__ = "1.0.0"
