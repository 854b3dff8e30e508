"""Two-channel conversation session."""

from .interfaces import Synthesizer, Transcriber, Translator
from .orchestrator import SessionOrchestrator
from .state import Channel, ChannelSide, ChannelSnapshot, ChannelState, SessionState

__all__ = [
    "Channel",
    "ChannelSide",
    "ChannelSnapshot",
    "ChannelState",
    "SessionOrchestrator",
    "SessionState",
    "Synthesizer",
    "Transcriber",
    "Translator",
]
