"""
Audio-driven lip resynthesis on fal.ai.

One remote job per call::

    UPLOADING -> SUBMITTED -> IN_PROGRESS -> SUCCEEDED
                                          \\-> FAILED

Progress log lines go to an observer callable and never affect control flow.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import fal_client
import httpx

from .errors import Cancelled, LipSyncFailed, PipelineError, Timeout
from .io_http import download_to_file
from .models import CancellationToken, Stage

logger = logging.getLogger("lipdub")


class LipSyncState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class LipSyncJob:
    """State of one lip-sync call. Each ``run`` gets its own."""

    state: LipSyncState = LipSyncState.IDLE
    request_id: str | None = None
    result_url: str | None = None

    def transition(self, state: LipSyncState) -> None:
        logger.debug(f"lipsync {self.request_id or '-'}: {self.state.value} -> {state.value}")
        self.state = state


def _log_line(message: str) -> None:
    logger.info(f"[lipsync] {message}")


class LipSyncAdapter:
    """Upload a (video, audio) pair, run the job and fetch the result.

    The adapter holds no per-job state, so one instance can serve
    concurrent sessions.
    """

    def __init__(
        self,
        client: fal_client.SyncClient,
        http: httpx.Client,
        *,
        app: str = "fal-ai/tavus/hummingbird-lipsync/v0",
        timeout: float | None = 900.0,
        poll_interval: float = 1.0,
        show_progress: bool = False,
        redact=lambda s: s,
    ) -> None:
        self.client = client
        self.http = http
        self.app = app
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.show_progress = show_progress
        self.redact = redact

    def run(
        self,
        video_path: Path,
        audio_path: Path,
        out_path: Path,
        *,
        on_log: Callable[[str], None] | None = None,
        cancel: CancellationToken | None = None,
        job: LipSyncJob | None = None,
    ) -> str:
        """Block until the job resolves; return the remote result URL.

        The result bytes are written to ``out_path``. On any failure no
        partial output is left behind. Pass ``job`` to observe the state.
        """
        job = job if job is not None else LipSyncJob()
        on_log = on_log or _log_line
        deadline = time.monotonic() + self.timeout if self.timeout else None
        try:
            result_url = self._run(job, video_path, audio_path, out_path, on_log, cancel, deadline)
        except PipelineError:
            job.transition(LipSyncState.FAILED)
            Path(out_path).unlink(missing_ok=True)
            raise
        except Exception as e:
            job.transition(LipSyncState.FAILED)
            Path(out_path).unlink(missing_ok=True)
            raise LipSyncFailed(
                f"Lip-sync failed: {self.redact(str(e))}", stage=Stage.LIPSYNC, cause=e
            ) from e
        job.result_url = result_url
        job.transition(LipSyncState.SUCCEEDED)
        return result_url

    def _run(self, job, video_path, audio_path, out_path, on_log, cancel, deadline) -> str:
        job.transition(LipSyncState.UPLOADING)
        logger.info("Uploading video and audio to fal.ai storage …")
        video_url = self.client.upload_file(video_path)
        audio_url = self.client.upload_file(audio_path)

        handle = self.client.submit(self.app, arguments={"video_url": video_url, "audio_url": audio_url})
        job.request_id = getattr(handle, "request_id", None)
        job.transition(LipSyncState.SUBMITTED)
        logger.info(f"Submitted lip-sync job {job.request_id or '?'} to {self.app}")

        job.transition(LipSyncState.IN_PROGRESS)
        for event in handle.iter_events(with_logs=True, interval=self.poll_interval):
            if cancel is not None and cancel.cancelled:
                self._cancel_remote(handle)
                raise Cancelled("Lip-sync cancelled by caller", stage=Stage.LIPSYNC)
            if deadline is not None and time.monotonic() > deadline:
                self._cancel_remote(handle)
                raise Timeout(
                    f"Lip-sync job did not finish within {self.timeout:.0f}s", stage=Stage.LIPSYNC
                )
            if isinstance(event, fal_client.InProgress) and event.logs:
                for log in event.logs:
                    self._notify(on_log, str(log.get("message", "")))

        result = handle.get()
        try:
            result_url = result["video"]["url"]
        except (KeyError, TypeError) as e:
            raise LipSyncFailed(
                "Lip-sync result has no video url", stage=Stage.LIPSYNC, cause=e
            ) from e
        logger.info("Downloading lip-synced video …")
        download_to_file(self.http, result_url, out_path, desc="result", show_progress=self.show_progress)
        return result_url

    def _cancel_remote(self, handle) -> None:
        try:
            handle.cancel()
        except Exception as e:
            logger.warning(f"Could not cancel remote lip-sync job: {self.redact(str(e))}")

    def _notify(self, on_log: Callable[[str], None], message: str) -> None:
        try:
            on_log(message)
        except Exception as e:
            logger.warning(f"Lip-sync log observer raised {type(e).__name__}: {e}")
