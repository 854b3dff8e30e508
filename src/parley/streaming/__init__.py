"""Conversation server and device relay backends."""

from .relay import RelaySynthesizer, RelayTranscriber
from .server import ParleyServer, create_app

__all__ = ["ParleyServer", "RelaySynthesizer", "RelayTranscriber", "create_app"]
