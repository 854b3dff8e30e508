"""Prompt construction and response cleanup for the local model."""

import re

from ..languages import LanguageTag, language_name

PROMPT_TEMPLATE = """You are a professional interpreter. Translate the following {source} text into {target}.
Reply with the {target} translation only. Do not add notes, explanations or alternatives.

{source}: {text}
{target}:"""

_LABEL = re.compile(r"^\s*translation\s*:\s*", re.IGNORECASE)

_QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "“": "”",
    "‘": "’",
    "«": "»",
    "「": "」",
}


def build_prompt(text: str, source: LanguageTag, target: LanguageTag) -> str:
    """Build the instruction prompt. Same inputs always give the same prompt."""
    return PROMPT_TEMPLATE.format(
        source=language_name(source),
        target=language_name(target),
        text=text.strip(),
    )


def stop_sequences(source: LanguageTag, target: LanguageTag) -> tuple[str, ...]:
    """Sequences that mean the model has started echoing the template or a new turn."""
    return (
        "\n\n",
        f"\n{language_name(source)}:",
        f"\n{language_name(target)}:",
        "You are a professional interpreter",
        "Translate the following",
        "</s>",
        "[INST]",
        "<|im_start|>",
        "\nUser:",
    )


def sanitize(raw: str, stop: tuple[str, ...] = ()) -> str:
    """Clean raw model output down to the bare translation."""
    text = raw
    for sequence in stop:
        index = text.find(sequence)
        if index != -1:
            text = text[:index]

    text = text.strip()
    text = _LABEL.sub("", text, count=1).strip()

    if len(text) >= 2 and _QUOTE_PAIRS.get(text[0]) == text[-1]:
        text = text[1:-1].strip()

    return text
