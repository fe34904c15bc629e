"""
Pipeline configuration.

Built once (usually from the environment) and handed to the pipeline and
every adapter; nothing below this module reads ``os.environ``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import MissingConfiguration

DEFAULT_RATES = {
    "stt_openai_per_min": 0.006,
    "gpt_in_per_mtok": 0.15,
    "gpt_out_per_mtok": 0.60,
    "tts_elevenlabs_per_kchar": 0.30,
    "lipsync_per_min": 0.70,
}


@dataclass
class PipelineConfig:
    """Credentials and tunables for one pipeline instance."""

    openai_api_key: str | None = None
    elevenlabs_api_key: str | None = None
    fal_key: str | None = None
    lookup_api_key: str | None = None
    lookup_url: str | None = None

    workdir: Path = Path(".work")
    output_dir: Path | None = None

    # STT
    stt_backend: str = "openai"  # "openai" or "local"
    transcription_model: str = "whisper-1"
    local_whisper_model: str = "base.en"
    source_language: str = "en"

    # Translation
    translation_model: str = "gpt-4o-mini"
    translation_temperature: float = 0.7

    # TTS / voices
    tts_model_id: str = "eleven_multilingual_v2"
    tts_stability: float = 0.5
    tts_similarity_boost: float = 0.75
    preferred_gender: str = "male"

    # Downscale before upload
    downscale_height: int = 480
    downscale_fps: int = 24

    # Lip-sync
    lipsync_app: str = "fal-ai/tavus/hummingbird-lipsync/v0"
    lipsync_timeout: float | None = 900.0  # seconds, None waits forever
    lipsync_poll_interval: float = 1.0

    http_timeout: float = 60.0
    keep_failed_artifacts: bool = False
    show_progress: bool = False
    rates: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RATES))

    def __post_init__(self) -> None:
        self.workdir = Path(self.workdir)
        self.output_dir = Path(self.output_dir) if self.output_dir else self.workdir / "output"

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Read credentials from the process environment."""
        values = {
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "elevenlabs_api_key": os.getenv("ELEVENLABS_API_KEY"),
            "fal_key": os.getenv("FAL_KEY"),
            "lookup_api_key": os.getenv("LOOKUP_API_KEY"),
            "lookup_url": os.getenv("LOOKUP_API_URL"),
        }
        values.update(overrides)
        return cls(**values)

    def require(self, *, remote_source: bool = False) -> None:
        """Fail fast on the first missing credential."""
        required = [
            ("OPENAI_API_KEY", self.openai_api_key),
            ("ELEVENLABS_API_KEY", self.elevenlabs_api_key),
            ("FAL_KEY", self.fal_key),
        ]
        if remote_source:
            required += [
                ("LOOKUP_API_KEY", self.lookup_api_key),
                ("LOOKUP_API_URL", self.lookup_url),
            ]
        for name, value in required:
            if not value:
                raise MissingConfiguration(name)

    @property
    def secrets(self) -> list[str]:
        keys = [self.openai_api_key, self.elevenlabs_api_key, self.fal_key, self.lookup_api_key]
        return [k for k in keys if k]

    def redact(self, text: str) -> str:
        """Mask every configured credential in ``text``."""
        for secret in self.secrets:
            text = text.replace(secret, "***")
        return text
