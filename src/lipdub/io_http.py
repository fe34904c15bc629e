"""
Streaming HTTP downloads.
"""

import logging
from pathlib import Path

import httpx
from tqdm import tqdm

logger = logging.getLogger("lipdub")

USER_AGENT = "reel-translator/0.1"


def download_to_file(
    client: httpx.Client,
    url: str,
    dest: str | Path,
    *,
    desc: str = "download",
    show_progress: bool = False,
) -> int:
    """Stream ``url`` into ``dest`` and return the number of bytes written.

    A partially written file is removed before the error propagates.
    """
    dest = Path(dest)
    written = 0
    try:
        with client.stream("GET", url, headers={"User-Agent": USER_AGENT}) as r:
            r.raise_for_status()
            total = int(r.headers.get("content-length", 0)) or None
            with open(dest, "wb") as f, tqdm(
                total=total, unit="B", unit_scale=True, desc=desc, disable=not show_progress
            ) as bar:
                for chunk in r.iter_bytes():
                    f.write(chunk)
                    written += len(chunk)
                    bar.update(len(chunk))
    except BaseException:
        dest.unlink(missing_ok=True)
        raise
    logger.debug(f"Downloaded {written} bytes -> {dest}")
    return written
