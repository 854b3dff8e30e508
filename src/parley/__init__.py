"""
Parley - Face-to-face conversation translation on a single device.

Two people share one screen, each on their own half:
- Speech on one half is transcribed by the device recognizer
- Translated by a local on-device language model
- Spoken back to the person on the other half

Features:
- Busy-safe two-channel session state machine
- Downloadable GGUF model catalog with progress and cancellation
- Phrasebook fallback when no model is available
- REST/WebSocket server for the presentation client
"""

__version__ = "0.1.0"

from .config import ParleyConfig
from .session import ChannelSide, ChannelState, SessionOrchestrator

__all__ = [
    "ChannelSide",
    "ChannelState",
    "ParleyConfig",
    "SessionOrchestrator",
    "__version__",
]
