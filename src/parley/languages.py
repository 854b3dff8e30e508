"""Language table shared by the session and the translation engine."""

LanguageTag = str

# Full names are used in prompts, locales are handed to the speech backends.
LANGUAGES: dict[str, dict[str, str]] = {
    "en": {"name": "English", "locale": "en-US"},
    "es": {"name": "Spanish", "locale": "es-ES"},
    "fr": {"name": "French", "locale": "fr-FR"},
    "de": {"name": "German", "locale": "de-DE"},
    "it": {"name": "Italian", "locale": "it-IT"},
    "pt": {"name": "Portuguese", "locale": "pt-BR"},
    "ru": {"name": "Russian", "locale": "ru-RU"},
    "ja": {"name": "Japanese", "locale": "ja-JP"},
    "ko": {"name": "Korean", "locale": "ko-KR"},
    "zh": {"name": "Chinese", "locale": "zh-CN"},
    "ar": {"name": "Arabic", "locale": "ar-SA"},
    "hi": {"name": "Hindi", "locale": "hi-IN"},
}


def base_language(tag: LanguageTag) -> str:
    """Reduce a tag like ``pt-BR`` or ``zh_CN`` to its primary subtag."""
    return tag.replace("_", "-").split("-", 1)[0].strip().lower()


def language_name(tag: LanguageTag) -> str:
    """Get the display name for a language tag."""
    lang = LANGUAGES.get(base_language(tag))
    if lang:
        return lang["name"]
    return tag.upper()


def speech_locale(tag: LanguageTag) -> str:
    """Get the locale the recognizer and synthesizer expect for a tag."""
    if "-" in tag or "_" in tag:
        return tag.replace("_", "-")
    lang = LANGUAGES.get(base_language(tag))
    if lang:
        return lang["locale"]
    return tag
