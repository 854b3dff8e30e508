"""Protocol interfaces used by SessionOrchestrator."""

from __future__ import annotations

from typing import Callable, Protocol

from ..languages import LanguageTag

PartialCallback = Callable[[str], None]


class Transcriber(Protocol):
    def is_supported(self, locale: str) -> bool: ...

    async def start(self, locale: str, on_partial: PartialCallback) -> None: ...

    async def stop(self) -> str: ...


class Synthesizer(Protocol):
    async def speak(self, text: str, locale: str) -> None: ...

    async def stop(self) -> None: ...


class Translator(Protocol):
    async def translate(self, text: str, source: LanguageTag, target: LanguageTag) -> str: ...
