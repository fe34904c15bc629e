"""
Input acquisition: direct uploads and remote reel URLs.
"""

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from urllib.parse import urlparse

import httpx

from .errors import DownloadFailed, NoMediaFound
from .io_http import USER_AGENT, download_to_file
from .models import MediaCandidate, RemoteSource, SourceSpec, Stage, UploadSource

logger = logging.getLogger("lipdub")


def parse_candidates(payload) -> list[MediaCandidate]:
    """Extract media entries from a lookup response, preserving order.

    Accepts ``{"media": [...]}`` or a bare list. Entries that are not
    objects are skipped; a missing or non-string ``url`` becomes ``""``.
    """
    if isinstance(payload, dict):
        payload = payload.get("media") or []
    if not isinstance(payload, list):
        return []
    out: list[MediaCandidate] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        url = item.get("url")
        out.append(
            MediaCandidate(
                url=url if isinstance(url, str) else "",
                type=str(item.get("type") or ""),
            )
        )
    return out


def select_media_url(candidates: Sequence[MediaCandidate]) -> str:
    """First candidate whose url is a non-empty string."""
    for cand in candidates:
        if cand.url.strip():
            return cand.url
    raise NoMediaFound(
        f"No downloadable media among {len(candidates)} candidate(s)", stage=Stage.ACQUIRE
    )


class SourceAcquirer:
    """Writes the raw input video to a location allocated by the store."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        lookup_url: str | None = None,
        lookup_api_key: str | None = None,
        show_progress: bool = False,
        redact: Callable[[str], str] = lambda s: s,
    ) -> None:
        self.client = client
        self.lookup_url = lookup_url
        self.lookup_api_key = lookup_api_key
        self.show_progress = show_progress
        self.redact = redact

    def acquire(self, source: SourceSpec, dest: str | Path) -> Path:
        dest = Path(dest)
        if isinstance(source, UploadSource):
            return self._save_upload(source, dest)
        if isinstance(source, RemoteSource):
            return self._fetch_remote(source.url, dest)
        raise TypeError(f"Unsupported source: {type(source).__name__}")

    def _save_upload(self, source: UploadSource, dest: Path) -> Path:
        if not source.data:
            raise NoMediaFound(f"Uploaded file {source.filename!r} is empty", stage=Stage.ACQUIRE)
        try:
            dest.write_bytes(source.data)
        except OSError as e:
            raise DownloadFailed(
                f"Could not save upload {source.filename}: {e}", stage=Stage.ACQUIRE, cause=e
            ) from e
        logger.info(f"Saved upload {source.filename} ({len(source.data)} bytes) -> {dest}")
        return dest

    def lookup(self, reel_url: str) -> list[MediaCandidate]:
        """Ask the lookup service for the media behind a shareable URL."""
        headers = {
            "x-rapidapi-key": self.lookup_api_key or "",
            "x-rapidapi-host": urlparse(self.lookup_url or "").netloc,
            "accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        try:
            r = self.client.get(self.lookup_url, params={"url": reel_url}, headers=headers)
            r.raise_for_status()
            payload = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DownloadFailed(
                f"Media lookup failed: {self.redact(str(e))}", stage=Stage.ACQUIRE, cause=e
            ) from e
        candidates = parse_candidates(payload)
        logger.info(f"Lookup returned {len(candidates)} media candidate(s)")
        return candidates

    def _fetch_remote(self, reel_url: str, dest: Path) -> Path:
        logger.info(f"Resolving reel {reel_url} …")
        media_url = select_media_url(self.lookup(reel_url))
        try:
            size = download_to_file(
                self.client, media_url, dest, desc="video", show_progress=self.show_progress
            )
        except (httpx.HTTPError, OSError) as e:
            raise DownloadFailed(
                f"Media download failed: {self.redact(str(e))}", stage=Stage.ACQUIRE, cause=e
            ) from e
        if size == 0:
            dest.unlink(missing_ok=True)
            raise DownloadFailed("Media download returned no bytes", stage=Stage.ACQUIRE)
        logger.info(f"Downloaded reel ({size} bytes) -> {dest}")
        return dest
