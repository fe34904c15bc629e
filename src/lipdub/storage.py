"""
Session-scoped artifact storage on the local filesystem.

Layout under the working directory::

    <workdir>/tmp/<session_id>/<kind>.<ext>     intermediates
    <output_dir>/<session_id>_final.mp4         final artifact
"""

import logging
import shutil
from pathlib import Path

from .errors import PipelineError
from .models import Artifact, ArtifactKind, Lifetime, Session, Stage

logger = logging.getLogger("lipdub")


class ArtifactStore:
    """Allocates, tracks and releases artifact files per session."""

    def __init__(self, workdir: str | Path, output_dir: str | Path | None = None) -> None:
        self.workdir = Path(workdir)
        self.tmp_dir = self.workdir / "tmp"
        self.output_dir = Path(output_dir) if output_dir else self.workdir / "output"

    def _ensure_dirs(self) -> None:
        # Shared by every session; concurrent creation must not fail.
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def session_dir(self, session_id: str) -> Path:
        return self.tmp_dir / session_id

    def open_session(self, session: Session | None = None) -> Session:
        """Start a session and create its private directory."""
        session = session or Session()
        self._ensure_dirs()
        # exist_ok=False: a session id is never reused
        self.session_dir(session.id).mkdir()
        logger.debug(f"Opened session {session.id}")
        return session

    def allocate(self, session_id: str, kind: ArtifactKind) -> Path:
        """Return the storage location of ``kind`` for a session."""
        self._ensure_dirs()
        if kind is ArtifactKind.FINAL_VIDEO:
            return self.output_dir / f"{session_id}_final{kind.suffix}"
        return self.session_dir(session_id) / f"{kind.value}{kind.suffix}"

    def register(
        self,
        session: Session,
        kind: ArtifactKind,
        stage: Stage,
        lifetime: Lifetime | None = None,
    ) -> Artifact:
        """Allocate a location and record the artifact on the session."""
        if lifetime is None:
            lifetime = Lifetime.FINAL if kind is ArtifactKind.FINAL_VIDEO else Lifetime.INTERMEDIATE
        artifact = Artifact(
            kind=kind,
            location=self.allocate(session.id, kind),
            stage=stage,
            lifetime=lifetime,
        )
        session.artifacts[kind] = artifact
        return artifact

    def require(self, session: Session, kind: ArtifactKind) -> Path:
        """Location of an artifact an earlier stage of this session produced."""
        artifact = session.artifacts.get(kind)
        if artifact is None or not self.exists(artifact.location):
            msg = f"Artifact {kind.value} was not produced in session {session.id}"
            raise PipelineError(msg)
        return artifact.location

    @staticmethod
    def exists(location: str | Path) -> bool:
        return Path(location).is_file()

    @staticmethod
    def delete(location: str | Path) -> None:
        """Remove a file; no error if it is already gone."""
        Path(location).unlink(missing_ok=True)

    def release(self, session: Session, *, keep_intermediates: bool = False) -> None:
        """Delete the session's intermediate artifacts and its directory."""
        if keep_intermediates:
            logger.info(f"Keeping intermediates for session {session.id} in {self.session_dir(session.id)}")
            return
        for artifact in session.artifacts.values():
            if artifact.lifetime is Lifetime.INTERMEDIATE:
                self.delete(artifact.location)
        shutil.rmtree(self.session_dir(session.id), ignore_errors=True)
        logger.debug(f"Released session {session.id}")
