"""
Text-to-speech synthesis with ElevenLabs.
"""

import logging
from pathlib import Path

import httpx

from .errors import SynthesisFailed
from .io_http import USER_AGENT
from .models import Stage, Voice
from .voices import parse_voices

logger = logging.getLogger("lipdub")

API_BASE = "https://api.elevenlabs.io/v1"
HTTP_OK = 200


class ElevenLabsSynthesizer:
    """Voice listing and speech synthesis against the ElevenLabs REST API."""

    def __init__(
        self,
        client: httpx.Client,
        api_key: str,
        model_id: str = "eleven_multilingual_v2",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        redact=lambda s: s,
    ) -> None:
        self.client = client
        self.api_key = api_key
        self.model_id = model_id
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.redact = redact

    def _headers(self, accept: str) -> dict[str, str]:
        return {"xi-api-key": self.api_key, "accept": accept, "User-Agent": USER_AGENT}

    def list_voices(self) -> list[Voice]:
        """Fetch the voice catalog (never cached between runs)."""
        try:
            r = self.client.get(f"{API_BASE}/voices", headers=self._headers("application/json"))
            if r.status_code != HTTP_OK:
                raise SynthesisFailed(
                    f"Could not fetch voices list ({r.status_code})", stage=Stage.LIST_VOICES
                )
            voices = parse_voices(r.json())
        except (httpx.HTTPError, ValueError) as e:
            raise SynthesisFailed(
                f"Could not fetch voices list: {self.redact(str(e))}",
                stage=Stage.LIST_VOICES,
                cause=e,
            ) from e
        logger.info(f"Voice catalog has {len(voices)} voice(s)")
        return voices

    def synthesize(self, text: str, voice_id: str, out_path: Path) -> Path:
        """Synthesize ``text`` in one request and write the audio to ``out_path``."""
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {"stability": self.stability, "similarity_boost": self.similarity_boost},
        }
        headers = self._headers("audio/mpeg") | {"Content-Type": "application/json"}
        try:
            r = self.client.post(f"{API_BASE}/text-to-speech/{voice_id}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise SynthesisFailed(
                f"ElevenLabs TTS failed: {self.redact(str(e))}", stage=Stage.SYNTHESIZE, cause=e
            ) from e
        ctype = r.headers.get("content-type", "")
        if r.status_code != HTTP_OK or not ctype.startswith(("audio/", "application/octet-stream")):
            raise SynthesisFailed(
                f"ElevenLabs TTS failed: {r.status_code} {self.redact(r.text[:300])}",
                stage=Stage.SYNTHESIZE,
            )
        try:
            with open(out_path, "wb") as f:
                f.write(r.content)
        except OSError as e:
            raise SynthesisFailed(
                f"Could not write synthesized audio to {out_path}: {e}", stage=Stage.SYNTHESIZE, cause=e
            ) from e
        logger.info(f"Synthesized {len(r.content)} bytes of audio -> {out_path}")
        return out_path
