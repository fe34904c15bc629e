"""
Speech-to-text transcription.
"""

import logging
from pathlib import Path

from openai import OpenAI, OpenAIError

from .errors import TranscriptionFailed
from .models import Stage

logger = logging.getLogger("lipdub")


class WhisperTranscriber:
    """Transcribe audio with the OpenAI Whisper API.

    One request, no retry. Empty text is returned as-is: downstream stages
    accept it and will translate/synthesize nothing.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "whisper-1",
        language: str = "en",
        redact=lambda s: s,
    ) -> None:
        self.client = client
        self.model = model
        self.language = language
        self.redact = redact

    def transcribe(self, audio_path: Path) -> str:
        try:
            with open(audio_path, "rb") as f:
                logger.info(f"Transcribing with {self.model} (language: {self.language}) …")
                resp = self.client.audio.transcriptions.create(
                    model=self.model,
                    file=f,
                    language=self.language,
                )
        except (OpenAIError, OSError) as e:
            raise TranscriptionFailed(
                f"Transcription failed: {self.redact(str(e))}",
                stage=Stage.TRANSCRIBE,
                cause=e,
            ) from e
        text = getattr(resp, "text", None)
        if text is None and isinstance(resp, dict):
            text = resp.get("text", "")
        text = str(text or "").strip()
        if not text:
            logger.warning("Transcription returned empty text; continuing with empty transcript")
        return text


class LocalWhisperTranscriber:
    """Transcribe audio locally with faster-whisper (CPU, int8)."""

    def __init__(self, local_model: str = "base.en", language: str = "en", beam_size: int = 1) -> None:
        self.local_model = local_model
        self.language = language
        self.beam_size = beam_size
        self._model = None

    def _load(self):
        if self._model is None:
            try:
                from faster_whisper import WhisperModel
            except ImportError as e:
                raise TranscriptionFailed(
                    "faster-whisper is not installed. Install with: pip install 'reel-translator[local]'",
                    stage=Stage.TRANSCRIBE,
                    cause=e,
                ) from e
            logger.info(f"Loading faster-whisper model {self.local_model} …")
            try:
                self._model = WhisperModel(self.local_model, device="cpu", compute_type="int8")
            except Exception as e:
                raise TranscriptionFailed(
                    f"Could not load faster-whisper model {self.local_model}: {e}",
                    stage=Stage.TRANSCRIBE,
                    cause=e,
                ) from e
        return self._model

    def transcribe(self, audio_path: Path) -> str:
        model = self._load()
        logger.info(f"Transcribing locally with faster-whisper ({self.local_model}) …")
        try:
            segments_iter, _info = model.transcribe(
                str(audio_path),
                language=self.language,
                vad_filter=True,
                beam_size=self.beam_size,
            )
            text = " ".join(str(s.text).strip() for s in segments_iter).strip()
        except Exception as e:
            raise TranscriptionFailed(
                f"Local transcription failed: {e}", stage=Stage.TRANSCRIBE, cause=e
            ) from e
        if not text:
            logger.warning("Transcription returned empty text; continuing with empty transcript")
        return text
