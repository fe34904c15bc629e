"""
Audio and video processing utilities using ffmpeg.
"""

import logging
import subprocess
from pathlib import Path

from pydub import AudioSegment

from .errors import TranscodeFailed
from .models import Stage

logger = logging.getLogger("lipdub")


class CommandError(RuntimeError):
    """A child process exited with a non-zero status."""

    def __init__(self, cmd: list[str], returncode: int, output: str) -> None:
        super().__init__(f"{Path(cmd[0]).name} failed with code {returncode}")
        self.cmd = cmd
        self.returncode = returncode
        self.output = output


def run(cmd: list[str], *, check: bool = True) -> str:
    """Run a command and return its combined stdout/stderr."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    proc = subprocess.run(
        cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
    )
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout[-2000:])
        raise CommandError(cmd, proc.returncode, proc.stdout)
    return proc.stdout


def extract_audio(input_video: str, out_audio: str) -> None:
    """Extract the audio track of a video as mp3."""
    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        input_video,
        "-vn",
        "-acodec",
        "libmp3lame",
        "-q:a",
        "2",
        out_audio,
    ]
    run(cmd)


def downscale_video(input_video: str, output_video: str, height: int, fps: int) -> None:
    """Reduce height (width follows the aspect ratio) and frame rate.

    Never upscales. The audio track is dropped; lip-sync supplies its own.
    """
    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        input_video,
        "-vf",
        f"scale=-2:'min({height},ih)',fps={fps}",
        "-c:v",
        "libx264",
        "-preset",
        "veryfast",
        "-crf",
        "28",
        "-an",
        output_video,
    ]
    run(cmd)


def get_audio_duration_s(path: str) -> float:
    """Duration of an audio file in seconds."""
    return len(AudioSegment.from_file(path)) / 1000.0


class MediaTranscoder:
    """Stage-facing wrapper that turns ffmpeg failures into ``TranscodeFailed``."""

    def __init__(self, *, height: int = 480, fps: int = 24) -> None:
        self.height = height
        self.fps = fps

    def extract_audio(self, video: Path, out_audio: Path) -> Path:
        logger.info("Extracting audio …")
        try:
            extract_audio(str(video), str(out_audio))
        except (CommandError, OSError) as e:
            raise TranscodeFailed(
                f"Audio extraction failed: {e}", stage=Stage.EXTRACT_AUDIO, cause=e
            ) from e
        return out_audio

    def downscale(self, video: Path, out_video: Path) -> Path:
        logger.info(f"Downscaling video to {self.height}p @ {self.fps} fps …")
        try:
            downscale_video(str(video), str(out_video), self.height, self.fps)
        except (CommandError, OSError) as e:
            raise TranscodeFailed(
                f"Downscale failed: {e}", stage=Stage.DOWNSCALE, cause=e
            ) from e
        return out_video

    def audio_duration_s(self, audio: Path) -> float:
        try:
            return get_audio_duration_s(str(audio))
        except Exception as e:
            # pydub raises CouldntDecodeError or OSError depending on the failure
            raise TranscodeFailed(
                f"Could not read audio duration: {e}", stage=Stage.EXTRACT_AUDIO, cause=e
            ) from e
