"""
Shared fixtures: a test config and in-process fakes for every adapter.
"""

from pathlib import Path
from types import SimpleNamespace

import pytest

from lipdub.config import PipelineConfig
from lipdub.models import RemoteSource, UploadSource, Voice


class FakeAcquirer:
    def __init__(self, calls):
        self.calls = calls

    def acquire(self, source, dest):
        self.calls.append("acquire")
        data = source.data if isinstance(source, UploadSource) else f"remote:{source.url}".encode()
        Path(dest).write_bytes(data)
        return Path(dest)


class FakeTranscoder:
    def __init__(self, calls):
        self.calls = calls

    def extract_audio(self, video, out_audio):
        self.calls.append("extract_audio")
        Path(out_audio).write_bytes(b"audio:" + Path(video).read_bytes())
        return out_audio

    def audio_duration_s(self, audio):
        return 30.0

    def downscale(self, video, out_video):
        self.calls.append("downscale")
        Path(out_video).write_bytes(b"small:" + Path(video).read_bytes())
        return out_video


class FakeTranscriber:
    def __init__(self, calls, text="Hello there, welcome to my channel.", error=None):
        self.calls = calls
        self.text = text
        self.error = error

    def transcribe(self, audio_path):
        self.calls.append("transcribe")
        if self.error is not None:
            raise self.error
        return self.text


class FakeTranslator:
    def __init__(self, calls):
        self.calls = calls
        self.languages = []

    def translate(self, text, target_language):
        self.calls.append("translate")
        self.languages.append(target_language)
        return f"[{target_language}] {text}"


class FakeSynthesizer:
    def __init__(self, calls, voices):
        self.calls = calls
        self.voices = voices
        self.voice_ids = []

    def list_voices(self):
        self.calls.append("list_voices")
        return list(self.voices)

    def synthesize(self, text, voice_id, out_path):
        self.calls.append("synthesize")
        self.voice_ids.append(voice_id)
        Path(out_path).write_bytes(text.encode())
        return out_path


class FakeLipSync:
    def __init__(self, calls, error=None):
        self.calls = calls
        self.error = error

    def run(self, video_path, audio_path, out_path, *, on_log=None, cancel=None):
        self.calls.append("lipsync")
        Path(out_path).write_bytes(Path(video_path).read_bytes() + b"|" + Path(audio_path).read_bytes())
        if self.error is not None:
            raise self.error
        if on_log is not None:
            on_log("rendering")
        return "https://fal.test/result.mp4"


SPANISH_VOICES = [
    Voice(voice_id="v-en", name="Rachel", language="en", gender="female"),
    Voice(voice_id="v-es-f", name="Lucia", language="es", gender="female"),
    Voice(voice_id="v-es-m", name="Mateo", language="es", gender="male"),
]


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(
        openai_api_key="sk-test-openai",
        elevenlabs_api_key="el-test-key",
        fal_key="fal-test-key",
        lookup_api_key="lookup-test-key",
        lookup_url="https://lookup.test/media",
        workdir=tmp_path / "work",
    )


@pytest.fixture
def fakes():
    calls: list[str] = []
    return SimpleNamespace(
        calls=calls,
        acquirer=FakeAcquirer(calls),
        transcoder=FakeTranscoder(calls),
        transcriber=FakeTranscriber(calls),
        translator=FakeTranslator(calls),
        synthesizer=FakeSynthesizer(calls, SPANISH_VOICES),
        lipsync=FakeLipSync(calls),
    )


@pytest.fixture
def upload():
    return UploadSource(data=b"fake-mp4-bytes", filename="clip.mp4")


@pytest.fixture
def remote():
    return RemoteSource(url="https://www.instagram.com/reel/abc123/")
