"""Channel and session state."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from ..languages import LanguageTag


class ChannelSide(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def other(self) -> "ChannelSide":
        return ChannelSide.BOTTOM if self is ChannelSide.TOP else ChannelSide.TOP


class ChannelState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    TRANSLATING = "translating"
    SPEAKING = "speaking"


@dataclass
class Channel:
    side: ChannelSide
    language: LanguageTag
    state: ChannelState = ChannelState.IDLE
    partial: str = ""
    transcript: str = ""
    translation: str = ""

    def begin_listening(self) -> None:
        self.state = ChannelState.LISTENING
        self.partial = ""
        self.transcript = ""
        self.translation = ""

    def snapshot(self) -> "ChannelSnapshot":
        return ChannelSnapshot(
            side=self.side,
            language=self.language,
            state=self.state,
            partial=self.partial,
            transcript=self.transcript,
            translation=self.translation,
        )


@dataclass(frozen=True)
class ChannelSnapshot:
    side: ChannelSide
    language: LanguageTag
    state: ChannelState
    partial: str
    transcript: str
    translation: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["side"] = self.side.value
        data["state"] = self.state.value
        return data


@dataclass(frozen=True)
class SessionState:
    top: ChannelSnapshot
    bottom: ChannelSnapshot
    busy: bool
    synthesizing: bool

    @property
    def active_side(self) -> ChannelSide | None:
        for channel in (self.top, self.bottom):
            if channel.state is not ChannelState.IDLE:
                return channel.side
        return None

    def to_dict(self) -> dict:
        return {
            "top": self.top.to_dict(),
            "bottom": self.bottom.to_dict(),
            "busy": self.busy,
            "synthesizing": self.synthesizing,
        }
