"""
Voice catalog parsing and selection.
"""

from collections.abc import Sequence

from .errors import NoVoicesAvailable
from .models import Stage, Voice

DEFAULT_GENDER = "male"


def parse_voices(payload) -> list[Voice]:
    """Build ``Voice`` records from an ElevenLabs ``/v1/voices`` response."""
    voices = payload.get("voices", []) if isinstance(payload, dict) else []
    out: list[Voice] = []
    for v in voices or []:
        if not isinstance(v, dict) or not v.get("voice_id"):
            continue
        labels = v.get("labels") or {}
        out.append(
            Voice(
                voice_id=str(v["voice_id"]),
                name=str(v.get("name") or v["voice_id"]),
                language=str(labels.get("language") or ""),
                gender=str(labels.get("gender") or ""),
            )
        )
    return out


def select_voice(
    voices: Sequence[Voice], language_code: str, gender: str = DEFAULT_GENDER
) -> Voice:
    """Pick a voice, first match wins:

    1. language and gender match
    2. language matches
    3. the first voice in the catalog
    """
    if not voices:
        raise NoVoicesAvailable("Voice provider returned no voices", stage=Stage.SELECT_VOICE)
    lang = language_code.lower()
    gender = gender.lower()
    for v in voices:
        if v.language.lower() == lang and v.gender.lower() == gender:
            return v
    for v in voices:
        if v.language.lower() == lang:
            return v
    return voices[0]
