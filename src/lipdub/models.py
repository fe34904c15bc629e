"""
Data models for the translation pipeline.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


class ArtifactKind(str, Enum):
    """Byte-bearing outputs of the pipeline stages."""

    RAW_VIDEO = "raw_video"
    EXTRACTED_AUDIO = "extracted_audio"
    DOWNSCALED_VIDEO = "downscaled_video"
    TRANSLATED_AUDIO = "translated_audio"
    FINAL_VIDEO = "final_video"

    @property
    def suffix(self) -> str:
        if self in (ArtifactKind.EXTRACTED_AUDIO, ArtifactKind.TRANSLATED_AUDIO):
            return ".mp3"
        return ".mp4"


class Lifetime(str, Enum):
    INTERMEDIATE = "intermediate"
    FINAL = "final"


class Stage(str, Enum):
    """Pipeline stages, declared in execution order."""

    ACQUIRE = "acquire"
    EXTRACT_AUDIO = "extract_audio"
    TRANSCRIBE = "transcribe"
    TRANSLATE = "translate"
    LIST_VOICES = "list_voices"
    SELECT_VOICE = "select_voice"
    SYNTHESIZE = "synthesize"
    DOWNSCALE = "downscale"
    LIPSYNC = "lipsync"


class SessionStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class Artifact:
    """A file produced by one stage and consumed by a later one."""

    kind: ArtifactKind
    location: Path
    stage: Stage
    lifetime: Lifetime = Lifetime.INTERMEDIATE


@dataclass
class Session:
    """One end-to-end run for a single input video and target language."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    stage: Stage | None = None
    status: SessionStatus = SessionStatus.PENDING
    artifacts: dict[ArtifactKind, Artifact] = field(default_factory=dict)
    error: Exception | None = None


@dataclass(frozen=True)
class Voice:
    """A voice offered by the speech-synthesis provider."""

    voice_id: str
    name: str
    language: str = ""
    gender: str = ""


@dataclass(frozen=True)
class MediaCandidate:
    """A media entry returned by the reel lookup service."""

    url: str
    type: str = ""


@dataclass(frozen=True)
class UploadSource:
    """Video bytes supplied inline with the request."""

    data: bytes
    filename: str = "input.mp4"


@dataclass(frozen=True)
class RemoteSource:
    """A shareable reel URL resolved through the lookup service."""

    url: str


SourceSpec = UploadSource | RemoteSource


@dataclass
class PipelineResult:
    """Outcome of a successful run."""

    session: Session
    final_path: Path
    transcript: str
    translation: str
    voice: Voice
    costs: dict[str, float] = field(default_factory=dict)


class CancellationToken:
    """Caller-owned abort signal, checked between and inside blocking stages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
