"""
Error taxonomy for pipeline stages.

Every error carries the stage that produced it and the wrapped cause. Messages
are expected to be redacted by the raiser (see ``PipelineConfig.redact``).
"""

from .models import Stage


class PipelineError(Exception):
    """Base class for all typed pipeline failures."""

    kind = "PipelineError"

    def __init__(
        self,
        message: str,
        *,
        stage: Stage | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.cause = cause

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage.value}] {self.message}"


class MissingConfiguration(PipelineError):
    kind = "MissingConfiguration"

    def __init__(self, credential: str) -> None:
        super().__init__(f"{credential} is not set. Put it in .env or environment.")
        self.credential = credential


class NoMediaFound(PipelineError):
    kind = "NoMediaFound"


class DownloadFailed(PipelineError):
    kind = "DownloadFailed"


class TranscodeFailed(PipelineError):
    kind = "TranscodeFailed"


class TranscriptionFailed(PipelineError):
    kind = "TranscriptionFailed"


class TranslationFailed(PipelineError):
    kind = "TranslationFailed"


class NoVoicesAvailable(PipelineError):
    kind = "NoVoicesAvailable"


class SynthesisFailed(PipelineError):
    kind = "SynthesisFailed"


class LipSyncFailed(PipelineError):
    kind = "LipSyncFailed"


class Timeout(PipelineError):
    """The remote lip-sync job did not finish before the deadline."""

    kind = "Timeout"


class Cancelled(PipelineError):
    kind = "Cancelled"
