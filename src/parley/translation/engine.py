"""
Translation engine.

Model first, phrasebook second. The active model path is read from the
model store on every call; the runtime is reloaded only when that path
changes, and calls are serialized so concurrent channels never share a
generation context.
"""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import NoModelConfigured, TranslationFailed
from ..languages import LanguageTag
from .phrasebook import PHRASEBOOK, lookup_phrase
from .prompts import build_prompt, sanitize, stop_sequences
from .runtime import GenerationParams, ModelRuntime

if TYPE_CHECKING:
    from ..model_store import ModelStore

logger = logging.getLogger(__name__)


class TranslationEngine:
    """Translate text with the active local model."""

    def __init__(
        self,
        store: "ModelStore",
        runtime: ModelRuntime,
        params: GenerationParams | None = None,
        phrasebook: dict[str, dict[str, str]] | None = None,
    ):
        self.store = store
        self.runtime = runtime
        self.params = params or GenerationParams()
        self.phrasebook = PHRASEBOOK if phrasebook is None else phrasebook
        self._lock = asyncio.Lock()
        self._loaded_path: Path | None = None

    @property
    def loaded_model(self) -> Path | None:
        """Path of the model currently held by the runtime, if any."""
        if self._loaded_path is not None and self.runtime.is_loaded():
            return self._loaded_path
        return None

    async def translate(self, text: str, source: LanguageTag, target: LanguageTag) -> str:
        """
        Translate ``text`` from ``source`` to ``target``.

        Returns an empty string for blank input without touching the model.

        Raises:
            NoModelConfigured: no usable model and no phrasebook entry
            TranslationFailed: the model and the phrasebook both failed
        """
        if not text.strip():
            return ""

        try:
            return await self._translate_with_model(text, source, target)
        except Exception as exc:
            fallback = lookup_phrase(text, target, self.phrasebook)
            if fallback is not None:
                logger.warning(f"Model translation unavailable ({exc}), using phrasebook")
                return fallback
            if isinstance(exc, TranslationFailed):
                raise
            raise TranslationFailed(f"Translation failed: {exc}") from exc

    async def _translate_with_model(
        self, text: str, source: LanguageTag, target: LanguageTag
    ) -> str:
        active = self.store.get_active()
        if active is None or not Path(active).is_file():
            raise NoModelConfigured()

        prompt = build_prompt(text, source, target)
        params = replace(self.params, stop=stop_sequences(source, target))

        async with self._lock:
            await asyncio.to_thread(self._ensure_loaded, Path(active))
            raw = await asyncio.to_thread(self.runtime.complete, prompt, params)

        result = sanitize(raw, params.stop)
        if not result:
            raise TranslationFailed("Model returned an empty translation")
        return result

    def _ensure_loaded(self, path: Path) -> None:
        if self._loaded_path == path and self.runtime.is_loaded():
            return
        if self.runtime.is_loaded():
            logger.info(f"Active model changed, unloading {self._loaded_path}")
            self.runtime.unload()
            self._loaded_path = None
        self.runtime.load(path)
        self._loaded_path = path

    async def unload(self) -> None:
        """Release the runtime's model once no inference is running."""
        async with self._lock:
            if self.runtime.is_loaded():
                await asyncio.to_thread(self.runtime.unload)
            self._loaded_path = None
