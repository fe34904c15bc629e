"""
Translation of the transcript into the target language.
"""

import logging

from openai import OpenAI, OpenAIError

from .errors import TranslationFailed
from .models import Stage

logger = logging.getLogger("lipdub")

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "uk": "Ukrainian",
    "pl": "Polish",
    "nl": "Dutch",
    "sv": "Swedish",
    "tr": "Turkish",
}


def get_language_name(language_code: str) -> str:
    """Get human-readable language name from language code."""
    return LANGUAGE_NAMES.get(language_code.lower(), language_code.upper())


def resolve_language(value: str) -> tuple[str, str]:
    """Map a language code or name to ``(code, name)``.

    Unknown values are passed through: the name is used verbatim for the
    translation prompt and its lowercase form as the voice language tag.
    """
    value = value.strip()
    lowered = value.lower()
    if lowered in LANGUAGE_NAMES:
        return lowered, LANGUAGE_NAMES[lowered]
    for code, name in LANGUAGE_NAMES.items():
        if name.lower() == lowered:
            return code, name
    return lowered, value


class Translator:
    """Single-request GPT translation that keeps tone and style.

    Sampling is not deterministic (temperature > 0); identical input can
    produce different output.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        redact=lambda s: s,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.redact = redact

    def translate(self, text: str, target_language: str) -> str:
        system = (
            f"You are a translator. Translate the following text to {target_language}. "
            "Keep the same tone and style."
        )
        try:
            logger.info(f"Translating {len(text)} characters to {target_language} using {self.model}...")
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": text},
                ],
                temperature=self.temperature,
            )
            translated = (response.choices[0].message.content or "").strip()
        except (OpenAIError, IndexError, AttributeError) as e:
            raise TranslationFailed(
                f"Translation failed: {self.redact(str(e))}", stage=Stage.TRANSLATE, cause=e
            ) from e
        logger.info(f"Translation completed: {len(text)} -> {len(translated)} characters")
        return translated
