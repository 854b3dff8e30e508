"""Fixed phrase table used when the local model is unavailable or fails."""

from ..languages import LanguageTag, base_language

# Keyed by lower-cased phrase, then by target language.
PHRASEBOOK: dict[str, dict[str, str]] = {
    "hello": {
        "en": "Hello",
        "es": "Hola",
        "fr": "Bonjour",
        "de": "Hallo",
        "it": "Ciao",
        "pt": "Olá",
        "ru": "Привет",
        "ja": "こんにちは",
        "ko": "안녕하세요",
        "zh": "你好",
        "ar": "مرحبا",
        "hi": "नमस्ते",
    },
    "hello, how are you today?": {
        "es": "Hola, ¿cómo estás hoy?",
        "fr": "Bonjour, comment allez-vous aujourd'hui?",
        "de": "Hallo, wie geht es dir heute?",
        "it": "Ciao, come stai oggi?",
        "pt": "Olá, como você está hoje?",
        "ru": "Привет, как дела сегодня?",
        "ja": "こんにちは、今日はいかがですか？",
        "ko": "안녕하세요, 오늘 어떻게 지내세요?",
        "zh": "你好，你今天怎么样？",
        "ar": "مرحبا، كيف حالك اليوم؟",
        "hi": "नमस्ते, आज आप कैसे हैं?",
    },
    "thank you": {
        "es": "Gracias",
        "fr": "Merci",
        "de": "Danke",
        "it": "Grazie",
        "pt": "Obrigado",
        "ru": "Спасибо",
        "ja": "ありがとう",
        "ko": "감사합니다",
        "zh": "谢谢",
        "ar": "شكرا",
        "hi": "धन्यवाद",
    },
    "goodbye": {
        "es": "Adiós",
        "fr": "Au revoir",
        "de": "Auf Wiedersehen",
        "it": "Arrivederci",
        "pt": "Adeus",
        "ru": "До свидания",
        "ja": "さようなら",
        "ko": "안녕히 가세요",
        "zh": "再见",
        "ar": "مع السلامة",
        "hi": "अलविदा",
    },
    "yes": {
        "es": "Sí",
        "fr": "Oui",
        "de": "Ja",
        "it": "Sì",
        "pt": "Sim",
        "ru": "Да",
        "ja": "はい",
        "ko": "네",
        "zh": "是",
        "ar": "نعم",
        "hi": "हाँ",
    },
    "no": {
        "es": "No",
        "fr": "Non",
        "de": "Nein",
        "it": "No",
        "pt": "Não",
        "ru": "Нет",
        "ja": "いいえ",
        "ko": "아니요",
        "zh": "不",
        "ar": "لا",
        "hi": "नहीं",
    },
    "hola": {"en": "Hello", "fr": "Bonjour", "de": "Hallo", "it": "Ciao", "pt": "Olá"},
    "gracias": {"en": "Thank you", "fr": "Merci", "de": "Danke", "it": "Grazie", "pt": "Obrigado"},
}


def lookup_phrase(
    text: str,
    target: LanguageTag,
    phrasebook: dict[str, dict[str, str]] = PHRASEBOOK,
) -> str | None:
    """Return the fixed translation of ``text`` into ``target``, if known."""
    entry = phrasebook.get(text.strip().lower())
    if entry is None:
        return None
    return entry.get(base_language(target))
