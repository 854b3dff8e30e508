"""
Speech backends relayed to the client device.

The phone or browser showing the two halves of the screen runs its own
speech recognizer and text-to-speech voice. These classes adapt that remote
work to the Transcriber and Synthesizer interfaces: recognized text is fed
in by the server's endpoints, utterances go out as events and are awaited
until the client reports playback finished.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass

from ..errors import InvalidState, SynthesisFailed
from ..languages import base_language
from ..session.interfaces import PartialCallback

logger = logging.getLogger(__name__)

# Returns the number of devices the event was delivered to.
EventCallback = Callable[[dict], int]


class RelayTranscriber:
    """Transcriber whose text is pushed by the client's recognizer."""

    def __init__(self, supported_locales: Iterable[str] | None = None):
        self.supported_locales = set(supported_locales) if supported_locales else None
        self.locale: str | None = None
        self._text = ""
        self._final: str | None = None
        self._on_partial: PartialCallback | None = None
        self._stopped: asyncio.Event | None = None

    @property
    def listening(self) -> bool:
        return self._stopped is not None and not self._stopped.is_set()

    def is_supported(self, locale: str) -> bool:
        if self.supported_locales is None:
            return True
        supported = {base_language(s) for s in self.supported_locales}
        return locale in self.supported_locales or base_language(locale) in supported

    async def start(self, locale: str, on_partial: PartialCallback) -> None:
        self.locale = locale
        self._text = ""
        self._final = None
        self._on_partial = on_partial
        self._stopped = asyncio.Event()
        await self._stopped.wait()

    def feed(self, text: str, final: bool = False) -> None:
        """Accept recognized text from the client."""
        if not self.listening:
            raise InvalidState("Recognizer is not listening")
        self._text = text
        if final:
            self._final = text
        if self._on_partial:
            self._on_partial(text)

    async def stop(self) -> str:
        if self._stopped is not None:
            self._stopped.set()
        self._on_partial = None
        return self._final or ""


@dataclass
class Utterance:
    id: str
    text: str
    locale: str


class RelaySynthesizer:
    """Synthesizer that asks the client to speak and waits for it to finish."""

    def __init__(self, on_event: EventCallback | None = None):
        self.on_event = on_event
        self.current: Utterance | None = None
        self._done: asyncio.Event | None = None

    async def speak(self, text: str, locale: str) -> None:
        utterance = Utterance(id=uuid.uuid4().hex, text=text, locale=locale)
        self.current = utterance
        self._done = asyncio.Event()
        try:
            if not self._emit({"type": "speak", **asdict(utterance)}):
                raise SynthesisFailed("No device connected to play speech")
            await self._done.wait()
        finally:
            self.current = None

    def complete(self, utterance_id: str) -> bool:
        """Mark playback of ``utterance_id`` finished. False if it is not current."""
        if self.current is None or self.current.id != utterance_id or self._done is None:
            return False
        self._done.set()
        return True

    async def stop(self) -> None:
        if self.current is None or self._done is None:
            return
        self._emit({"type": "stop", "id": self.current.id})
        self._done.set()

    def _emit(self, event: dict) -> int:
        delivered = self.on_event(event) if self.on_event else 0
        if not delivered:
            logger.warning(f"No device connected for {event.get('type')} event")
        return delivered or 0
