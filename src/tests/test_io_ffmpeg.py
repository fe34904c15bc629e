"""
Tests for the ffmpeg wrappers.
"""

import subprocess

import pytest

from lipdub import io_ffmpeg
from lipdub.errors import TranscodeFailed
from lipdub.io_ffmpeg import CommandError, MediaTranscoder
from lipdub.models import Stage


@pytest.fixture
def commands(monkeypatch):
    seen = []
    monkeypatch.setattr(io_ffmpeg, "run", lambda cmd, check=True: seen.append(cmd) or "")
    return seen


def test_extract_audio_command(commands, tmp_path):
    """Audio extraction drops video and encodes mp3."""
    MediaTranscoder().extract_audio(tmp_path / "in.mp4", tmp_path / "a.mp3")

    (cmd,) = commands
    assert cmd[0] == "ffmpeg"
    assert "-vn" in cmd
    assert cmd[cmd.index("-acodec") + 1] == "libmp3lame"
    assert cmd[-1] == str(tmp_path / "a.mp3")


def test_downscale_command(commands, tmp_path):
    """Downscale keeps aspect ratio, caps height and sets the frame rate."""
    MediaTranscoder(height=360, fps=15).downscale(tmp_path / "in.mp4", tmp_path / "small.mp4")

    (cmd,) = commands
    vf = cmd[cmd.index("-vf") + 1]
    assert vf == "scale=-2:'min(360,ih)',fps=15"
    assert "-an" in cmd
    assert cmd[-1] == str(tmp_path / "small.mp4")


def test_ffmpeg_failure_is_transcode_failed(monkeypatch, tmp_path):
    """A failing ffmpeg surfaces TranscodeFailed tagged with the stage."""

    def failing(cmd, check=True):
        raise CommandError(cmd, 1, "Invalid data found when processing input")

    monkeypatch.setattr(io_ffmpeg, "run", failing)

    with pytest.raises(TranscodeFailed) as exc_info:
        MediaTranscoder().extract_audio(tmp_path / "in.mp4", tmp_path / "a.mp3")
    assert exc_info.value.stage is Stage.EXTRACT_AUDIO
    assert isinstance(exc_info.value.cause, CommandError)

    with pytest.raises(TranscodeFailed) as exc_info:
        MediaTranscoder().downscale(tmp_path / "in.mp4", tmp_path / "s.mp4")
    assert exc_info.value.stage is Stage.DOWNSCALE


def test_missing_ffmpeg_is_transcode_failed(monkeypatch, tmp_path):
    """ffmpeg not being installed is reported as a transcode failure."""

    def missing(cmd, check=True):
        raise FileNotFoundError("ffmpeg")

    monkeypatch.setattr(io_ffmpeg, "run", missing)

    with pytest.raises(TranscodeFailed):
        MediaTranscoder().extract_audio(tmp_path / "in.mp4", tmp_path / "a.mp3")


def test_run_raises_command_error(monkeypatch):
    """A non-zero exit raises CommandError carrying the output."""

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="boom")

    monkeypatch.setattr(io_ffmpeg.subprocess, "run", fake_run)

    with pytest.raises(CommandError) as exc_info:
        io_ffmpeg.run(["ffmpeg", "-i", "x"])
    assert exc_info.value.returncode == 1
    assert exc_info.value.output == "boom"
    assert io_ffmpeg.run(["ffmpeg"], check=False) == "boom"
