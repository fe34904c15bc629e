"""
Tests for cost estimation.
"""

import pytest

from lipdub.config import DEFAULT_RATES
from lipdub.cost import estimate_costs


def test_estimate_costs():
    """Costs scale with audio minutes and characters."""
    est = estimate_costs(2.0, transcript_chars=4000, translated_chars=2000, rates=DEFAULT_RATES)

    assert est["stt_cost"] == pytest.approx(2.0 * 0.006)
    assert est["tts_cost"] == pytest.approx(2.0 * 0.30)
    assert est["lipsync_cost"] == pytest.approx(2.0 * 0.70)
    assert est["total"] == pytest.approx(
        est["stt_cost"] + est["translation_cost"] + est["tts_cost"] + est["lipsync_cost"]
    )


def test_local_stt_is_free():
    """Local transcription costs nothing."""
    est = estimate_costs(5.0, transcript_chars=0, translated_chars=0, rates=DEFAULT_RATES, stt_backend="local")

    assert est["stt_cost"] == 0.0
    assert est["tts_cost"] == 0.0
