"""
Bilingual session orchestration.

Two channels (top and bottom speaker) share one microphone, one speaker and
one translation engine. Every request checks and claims the session before
its first suspension point, so a conflicting request that arrives while
another is suspended is rejected with ``Busy`` instead of being queued.
At most one channel is ever outside ``IDLE``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..errors import (
    Busy,
    InvalidState,
    SynthesisFailed,
    TranscriptionFailed,
    TranscriptionUnsupported,
)
from ..languages import LanguageTag, speech_locale
from .interfaces import Synthesizer, Transcriber, Translator
from .state import Channel, ChannelSide, ChannelSnapshot, ChannelState, SessionState

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState], None]

_ACTIVE = (ChannelState.LISTENING, ChannelState.TRANSLATING)


class SessionOrchestrator:
    def __init__(
        self,
        transcriber: Transcriber,
        synthesizer: Synthesizer,
        translator: Translator,
        top_language: LanguageTag = "en",
        bottom_language: LanguageTag = "es",
        stop_timeout_s: float = 3.0,
        on_change: Optional[StateCallback] = None,
    ) -> None:
        self._transcriber = transcriber
        self._synthesizer = synthesizer
        self._translator = translator
        self._stop_timeout_s = stop_timeout_s
        self.on_change = on_change

        self._channels = {
            ChannelSide.TOP: Channel(ChannelSide.TOP, top_language),
            ChannelSide.BOTTOM: Channel(ChannelSide.BOTTOM, bottom_language),
        }
        self._busy = False
        self._synthesizing = False
        self._stopping_synthesis = False
        self._synthesis_idle = asyncio.Event()
        self._synthesis_idle.set()
        self._listen_task: asyncio.Task | None = None

    # Observers

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def is_synthesizing(self) -> bool:
        return self._synthesizing

    def state(self, side: ChannelSide) -> ChannelState:
        return self._channels[side].state

    def channel(self, side: ChannelSide) -> ChannelSnapshot:
        return self._channels[side].snapshot()

    def snapshot(self) -> SessionState:
        return SessionState(
            top=self._channels[ChannelSide.TOP].snapshot(),
            bottom=self._channels[ChannelSide.BOTTOM].snapshot(),
            busy=self._busy,
            synthesizing=self._synthesizing,
        )

    # Requests

    async def request_start(self, side: ChannelSide) -> None:
        """Start capturing speech on ``side``, stopping any playback first."""
        channel = self._channels[side]
        self._ensure_quiet()
        locale = speech_locale(channel.language)
        if not self._transcriber.is_supported(locale):
            raise TranscriptionUnsupported(f"Speech recognition unavailable for {locale}")

        self._busy = True
        try:
            await self._cancel_synthesis()

            channel.begin_listening()
            self._notify()
            logger.info(f"{side.value} channel listening ({locale})")

            task = asyncio.create_task(self._transcriber.start(locale, self._partial_sink(side)))
            self._listen_task = task
            await asyncio.sleep(0)

            if task.done() and not task.cancelled() and task.exception() is not None:
                exc = task.exception()
                self._listen_task = None
                channel.state = ChannelState.IDLE
                self._notify()
                raise TranscriptionFailed(f"Failed to start recognizer: {exc}") from exc
        finally:
            self._busy = False

    async def request_stop(self, side: ChannelSide) -> None:
        """
        Stop capturing on ``side`` and translate what was said.

        The translation lands in the other channel's translation buffer.
        Nothing is played back; the caller decides with ``request_speak``.
        """
        channel = self._channels[side]
        if channel.state is not ChannelState.LISTENING:
            raise InvalidState(f"The {side.value} channel is {channel.state.value}, not listening")
        if self._busy:
            raise Busy("Another request is in progress")

        self._busy = True
        try:
            try:
                final_text = await self._finish_listening()
            except Exception as exc:
                channel.partial = ""
                channel.state = ChannelState.IDLE
                self._notify()
                raise TranscriptionFailed(f"Speech recognition failed: {exc}") from exc

            text = final_text if final_text.strip() else channel.partial
            channel.transcript = text.strip()
            channel.partial = ""

            if not channel.transcript:
                logger.info(f"{side.value} channel stopped with nothing to translate")
                channel.state = ChannelState.IDLE
                self._notify()
                return

            other = self._channels[side.other]
            channel.state = ChannelState.TRANSLATING
            self._notify()

            try:
                translated = await self._translator.translate(
                    channel.transcript, channel.language, other.language
                )
            except Exception:
                channel.state = ChannelState.IDLE
                self._notify()
                raise

            other.translation = translated
            channel.state = ChannelState.IDLE
            self._notify()
        finally:
            self._busy = False

    async def request_cancel(self, side: ChannelSide) -> None:
        """Abandon the current cycle on ``side`` without translating."""
        channel = self._channels[side]
        if channel.state is ChannelState.IDLE:
            return
        if channel.state is ChannelState.TRANSLATING:
            raise InvalidState(f"The {side.value} channel is translating")
        if channel.state is ChannelState.SPEAKING:
            await self.stop_synthesis()
            return
        if self._busy:
            raise Busy("Another request is in progress")

        self._busy = True
        try:
            try:
                await self._finish_listening()
            except Exception as exc:
                logger.warning(f"Recognizer error while cancelling: {exc}")
            channel.partial = ""
            channel.state = ChannelState.IDLE
            self._notify()
        finally:
            self._busy = False

    async def request_speak(self, side: ChannelSide, text: str, language: LanguageTag) -> None:
        """Speak ``text`` and return when playback completes or is stopped."""
        self._ensure_quiet()
        if not text.strip():
            logger.info("No text to speak")
            return

        channel = self._channels[side]
        self._busy = True
        try:
            await self._cancel_synthesis()
            channel.state = ChannelState.SPEAKING
            self._synthesizing = True
            self._stopping_synthesis = False
            self._synthesis_idle.clear()
        finally:
            self._busy = False
        self._notify()

        try:
            await self._synthesizer.speak(text, speech_locale(language))
        except Exception as exc:
            if not self._stopping_synthesis:
                raise SynthesisFailed(f"Failed to speak text: {exc}") from exc
            logger.info(f"Synthesizer ended with {exc!r} after stop")
        finally:
            channel.state = ChannelState.IDLE
            self._synthesizing = False
            self._synthesis_idle.set()
            self._notify()

    async def stop_synthesis(self) -> None:
        """Stop playback, if any, and wait for it to end."""
        if self._busy:
            raise Busy("Another request is in progress")
        self._busy = True
        try:
            await self._cancel_synthesis()
        finally:
            self._busy = False

    def swap(self) -> None:
        """Exchange the two sides' languages and text buffers."""
        self._ensure_idle()
        top = self._channels[ChannelSide.TOP]
        bottom = self._channels[ChannelSide.BOTTOM]
        top.language, bottom.language = bottom.language, top.language
        top.transcript, bottom.transcript = bottom.transcript, top.transcript
        top.translation, bottom.translation = bottom.translation, top.translation
        self._notify()

    def set_language(self, side: ChannelSide, language: LanguageTag) -> None:
        self._ensure_idle()
        self._channels[side].language = language
        self._notify()

    # Internals

    def _ensure_quiet(self) -> None:
        if self._busy:
            raise Busy("Another request is in progress")
        for channel in self._channels.values():
            if channel.state in _ACTIVE:
                raise Busy(f"The {channel.side.value} channel is {channel.state.value}")

    def _ensure_idle(self) -> None:
        self._ensure_quiet()
        if self._synthesizing:
            raise Busy("Playback is in progress")

    def _partial_sink(self, side: ChannelSide) -> Callable[[str], None]:
        channel = self._channels[side]

        def on_partial(text: str) -> None:
            if channel.state is ChannelState.LISTENING:
                channel.partial = text
                self._notify()

        return on_partial

    async def _finish_listening(self) -> str:
        task, self._listen_task = self._listen_task, None
        try:
            final_text = await self._transcriber.stop()
        except Exception:
            if task is not None:
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
            raise

        if task is not None:
            done, _ = await asyncio.wait({task}, timeout=self._stop_timeout_s)
            if not done:
                logger.warning("Recognizer did not stop in time, cancelling")
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
            elif not task.cancelled() and task.exception() is not None:
                raise task.exception()

        return final_text or ""

    async def _cancel_synthesis(self) -> None:
        if not self._synthesizing:
            return
        self._stopping_synthesis = True
        try:
            await self._synthesizer.stop()
        except Exception as exc:
            raise SynthesisFailed(f"Failed to stop speech: {exc}") from exc
        try:
            await asyncio.wait_for(self._synthesis_idle.wait(), self._stop_timeout_s)
        except asyncio.TimeoutError:
            raise Busy("Playback did not stop") from None

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self.snapshot())
