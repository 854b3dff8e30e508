"""Text translation with a local model and a phrasebook fallback."""

from .engine import TranslationEngine
from .phrasebook import PHRASEBOOK, lookup_phrase
from .prompts import build_prompt, sanitize, stop_sequences
from .runtime import GenerationParams, ModelRuntime, TransformersRuntime

__all__ = [
    "GenerationParams",
    "ModelRuntime",
    "PHRASEBOOK",
    "TransformersRuntime",
    "TranslationEngine",
    "build_prompt",
    "lookup_phrase",
    "sanitize",
    "stop_sequences",
]
