"""
Pipeline orchestrator: one input video in, one lip-synced translated video out.

Stages run strictly in order and are never retried here. The first failure
aborts the run; intermediates are released on every terminal state.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import fal_client
import httpx
from openai import OpenAI

from .config import PipelineConfig
from .cost import estimate_costs
from .errors import Cancelled, LipSyncFailed, PipelineError, TranscodeFailed
from .io_ffmpeg import MediaTranscoder
from .lipsync import LipSyncAdapter
from .models import (
    ArtifactKind,
    CancellationToken,
    PipelineResult,
    RemoteSource,
    Session,
    SessionStatus,
    SourceSpec,
    Stage,
)
from .source import SourceAcquirer
from .storage import ArtifactStore
from .stt import LocalWhisperTranscriber, WhisperTranscriber
from .translation import Translator, resolve_language
from .tts import ElevenLabsSynthesizer
from .voices import select_voice

logger = logging.getLogger("lipdub")


class Pipeline:
    """Runs sessions against one configuration.

    Adapters can be injected; any left as ``None`` are built from the
    config on first use, after credentials have been validated.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        store: ArtifactStore | None = None,
        acquirer=None,
        transcoder=None,
        transcriber=None,
        translator=None,
        synthesizer=None,
        lipsync=None,
        progress: Callable[[Session], None] | None = None,
        on_lipsync_log: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        self.store = store or ArtifactStore(config.workdir, config.output_dir)
        self.acquirer = acquirer
        self.transcoder = transcoder
        self.transcriber = transcriber
        self.translator = translator
        self.synthesizer = synthesizer
        self.lipsync = lipsync
        self.progress = progress
        self.on_lipsync_log = on_lipsync_log
        self._http: httpx.Client | None = None
        self._build_lock = threading.Lock()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None

    def _build_components(self) -> None:
        cfg = self.config
        with self._build_lock:
            if self._http is None:
                self._http = httpx.Client(follow_redirects=True, timeout=cfg.http_timeout)
            openai_client = None
            if self.transcriber is None or self.translator is None:
                openai_client = OpenAI(api_key=cfg.openai_api_key)
            if self.acquirer is None:
                self.acquirer = SourceAcquirer(
                    self._http,
                    lookup_url=cfg.lookup_url,
                    lookup_api_key=cfg.lookup_api_key,
                    show_progress=cfg.show_progress,
                    redact=cfg.redact,
                )
            if self.transcoder is None:
                self.transcoder = MediaTranscoder(height=cfg.downscale_height, fps=cfg.downscale_fps)
            if self.transcriber is None:
                if cfg.stt_backend == "local":
                    self.transcriber = LocalWhisperTranscriber(
                        cfg.local_whisper_model, language=cfg.source_language
                    )
                else:
                    self.transcriber = WhisperTranscriber(
                        openai_client,
                        model=cfg.transcription_model,
                        language=cfg.source_language,
                        redact=cfg.redact,
                    )
            if self.translator is None:
                self.translator = Translator(
                    openai_client,
                    model=cfg.translation_model,
                    temperature=cfg.translation_temperature,
                    redact=cfg.redact,
                )
            if self.synthesizer is None:
                self.synthesizer = ElevenLabsSynthesizer(
                    self._http,
                    cfg.elevenlabs_api_key,
                    model_id=cfg.tts_model_id,
                    stability=cfg.tts_stability,
                    similarity_boost=cfg.tts_similarity_boost,
                    redact=cfg.redact,
                )
            if self.lipsync is None:
                self.lipsync = LipSyncAdapter(
                    fal_client.SyncClient(key=cfg.fal_key),
                    self._http,
                    app=cfg.lipsync_app,
                    timeout=cfg.lipsync_timeout,
                    poll_interval=cfg.lipsync_poll_interval,
                    show_progress=cfg.show_progress,
                    redact=cfg.redact,
                )

    def _audio_minutes(self, audio: Path) -> float:
        """Length of the extracted audio, used only for the cost estimate."""
        try:
            return self.transcoder.audio_duration_s(audio) / 60.0
        except TranscodeFailed as e:
            logger.warning(f"Could not measure audio duration; cost estimate assumes 0 min: {e}")
            return 0.0

    @contextmanager
    def _stage(
        self, session: Session, stage: Stage, cancel: CancellationToken | None
    ) -> Iterator[None]:
        if cancel is not None and cancel.cancelled:
            raise Cancelled("Run cancelled by caller", stage=stage)
        session.stage = stage
        if self.progress is not None:
            self.progress(session)
        logger.info(f"[{session.id[:8]}] {stage.value} …")
        t0 = time.monotonic()
        try:
            yield
        except PipelineError as e:
            if e.stage is None:
                e.stage = stage
            raise
        logger.info(f"[{session.id[:8]}] {stage.value} done in {time.monotonic() - t0:.1f}s")

    def run(
        self,
        source: SourceSpec,
        target_language: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> Path:
        """Translate and lip-sync ``source``; return the final video path."""
        return self.execute(source, target_language, cancel=cancel).final_path

    def execute(
        self,
        source: SourceSpec,
        target_language: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> PipelineResult:
        """Like ``run`` but returns the full ``PipelineResult``."""
        self.config.require(remote_source=isinstance(source, RemoteSource))
        self._build_components()
        language_code, language_name = resolve_language(target_language)

        store = self.store
        session = store.open_session()
        logger.info(f"Session {session.id}: target language {language_name} ({language_code})")
        try:
            with self._stage(session, Stage.ACQUIRE, cancel):
                raw = store.register(session, ArtifactKind.RAW_VIDEO, Stage.ACQUIRE)
                self.acquirer.acquire(source, raw.location)

            with self._stage(session, Stage.EXTRACT_AUDIO, cancel):
                audio = store.register(session, ArtifactKind.EXTRACTED_AUDIO, Stage.EXTRACT_AUDIO)
                self.transcoder.extract_audio(store.require(session, ArtifactKind.RAW_VIDEO), audio.location)
                audio_min = self._audio_minutes(audio.location)

            with self._stage(session, Stage.TRANSCRIBE, cancel):
                transcript = self.transcriber.transcribe(
                    store.require(session, ArtifactKind.EXTRACTED_AUDIO)
                )
                logger.info(f"Transcription: {transcript[:200]!r}")

            with self._stage(session, Stage.TRANSLATE, cancel):
                translation = self.translator.translate(transcript, language_name)
                logger.info(f"Translation: {translation[:200]!r}")

            with self._stage(session, Stage.LIST_VOICES, cancel):
                voices = self.synthesizer.list_voices()

            with self._stage(session, Stage.SELECT_VOICE, cancel):
                voice = select_voice(voices, language_code, self.config.preferred_gender)
                logger.info(f"Selected voice: {voice.name} ({voice.language or '?'}, {voice.gender or '?'})")

            with self._stage(session, Stage.SYNTHESIZE, cancel):
                speech = store.register(session, ArtifactKind.TRANSLATED_AUDIO, Stage.SYNTHESIZE)
                self.synthesizer.synthesize(translation, voice.voice_id, speech.location)

            with self._stage(session, Stage.DOWNSCALE, cancel):
                small = store.register(session, ArtifactKind.DOWNSCALED_VIDEO, Stage.DOWNSCALE)
                self.transcoder.downscale(store.require(session, ArtifactKind.RAW_VIDEO), small.location)

            with self._stage(session, Stage.LIPSYNC, cancel):
                final = store.register(session, ArtifactKind.FINAL_VIDEO, Stage.LIPSYNC)
                self.lipsync.run(
                    store.require(session, ArtifactKind.DOWNSCALED_VIDEO),
                    store.require(session, ArtifactKind.TRANSLATED_AUDIO),
                    final.location,
                    on_log=self.on_lipsync_log,
                    cancel=cancel,
                )
                if not store.exists(final.location):
                    raise LipSyncFailed("Lip-sync produced no output file")

            session.status = SessionStatus.SUCCEEDED
        except PipelineError as e:
            session.error = e
            logger.error(f"Session {session.id} failed: {e}")
            raise
        finally:
            failed = session.status is not SessionStatus.SUCCEEDED
            if failed:
                session.status = SessionStatus.FAILED
                final_artifact = session.artifacts.get(ArtifactKind.FINAL_VIDEO)
                if final_artifact is not None:
                    store.delete(final_artifact.location)
            store.release(session, keep_intermediates=failed and self.config.keep_failed_artifacts)

        costs = estimate_costs(
            audio_min,
            transcript_chars=len(transcript),
            translated_chars=len(translation),
            rates=self.config.rates,
            stt_backend=self.config.stt_backend,
        )
        logger.info(f"=== Estimated costs (based on {audio_min:.2f} min) ===")
        for key, value in costs.items():
            logger.info(f"{key}: ${value:.4f}")
        logger.info(f"Done -> {final.location}")
        return PipelineResult(
            session=session,
            final_path=final.location,
            transcript=transcript,
            translation=translation,
            voice=voice,
            costs=costs,
        )
