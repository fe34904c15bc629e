"""
Cost estimation for one translation run.
"""

CHARS_PER_TOKEN = 4.0


def estimate_costs(
    audio_minutes: float,
    *,
    transcript_chars: int,
    translated_chars: int,
    rates: dict[str, float],
    stt_backend: str = "openai",
) -> dict[str, float]:
    """Estimate provider costs from audio length and text sizes."""
    stt_cost = (
        audio_minutes * float(rates.get("stt_openai_per_min", 0.0)) if stt_backend == "openai" else 0.0
    )
    tin = transcript_chars / CHARS_PER_TOKEN
    tout = translated_chars / CHARS_PER_TOKEN
    translation_cost = (tin / 1_000_000.0) * float(rates.get("gpt_in_per_mtok", 0.0)) + (
        tout / 1_000_000.0
    ) * float(rates.get("gpt_out_per_mtok", 0.0))
    tts_cost = (translated_chars / 1000.0) * float(rates.get("tts_elevenlabs_per_kchar", 0.0))
    lipsync_cost = audio_minutes * float(rates.get("lipsync_per_min", 0.0))
    total = stt_cost + translation_cost + tts_cost + lipsync_cost
    return {
        "stt_cost": stt_cost,
        "translation_cost": translation_cost,
        "tts_cost": tts_cost,
        "lipsync_cost": lipsync_cost,
        "total": total,
    }
