"""
Tests for the transcription and translation adapters.
"""

import sys
from types import ModuleType, SimpleNamespace

import httpx
import openai
import pytest

from lipdub.errors import TranscriptionFailed, TranslationFailed
from lipdub.models import Stage
from lipdub.stt import LocalWhisperTranscriber, WhisperTranscriber
from lipdub.translation import Translator, get_language_name, resolve_language


class FakeTranscriptions:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeCompletions:
    def __init__(self, content="Hola", error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def openai_client(transcriptions=None, completions=None):
    return SimpleNamespace(
        audio=SimpleNamespace(transcriptions=transcriptions),
        chat=SimpleNamespace(completions=completions),
    )


def connection_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/test")
    return openai.APIConnectionError(request=request)


def test_transcribe_sends_model_and_language(tmp_path):
    """Whisper gets the fixed model and the English hint."""
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"mp3")
    api = FakeTranscriptions(text="  Hello world.  ")

    text = WhisperTranscriber(openai_client(transcriptions=api)).transcribe(audio)

    assert text == "Hello world."
    assert api.kwargs["model"] == "whisper-1"
    assert api.kwargs["language"] == "en"


def test_empty_transcription_is_not_an_error(tmp_path):
    """Empty text is returned, not raised."""
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"mp3")

    text = WhisperTranscriber(openai_client(transcriptions=FakeTranscriptions(text=""))).transcribe(audio)

    assert text == ""


def test_transcription_error_is_wrapped(tmp_path):
    """API errors become TranscriptionFailed."""
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"mp3")
    api = FakeTranscriptions(error=connection_error())

    with pytest.raises(TranscriptionFailed) as exc_info:
        WhisperTranscriber(openai_client(transcriptions=api)).transcribe(audio)

    assert exc_info.value.stage is Stage.TRANSCRIBE
    assert isinstance(exc_info.value.cause, openai.APIConnectionError)


def test_missing_audio_file_is_wrapped(tmp_path):
    """An unreadable audio file is a transcription failure."""
    with pytest.raises(TranscriptionFailed):
        WhisperTranscriber(openai_client(transcriptions=FakeTranscriptions())).transcribe(tmp_path / "none.mp3")


def test_translate_prompt():
    """The system prompt names the target language; the text is the only user content."""
    api = FakeCompletions(content=" Hola a todos. ")

    out = Translator(openai_client(completions=api)).translate("Hello everyone.", "Spanish")

    assert out == "Hola a todos."
    messages = api.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert "Spanish" in messages[0]["content"]
    assert "tone and style" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "Hello everyone."}
    assert api.kwargs["temperature"] > 0


def test_translate_error_is_wrapped():
    """API errors become TranslationFailed."""
    api = FakeCompletions(error=connection_error())

    with pytest.raises(TranslationFailed) as exc_info:
        Translator(openai_client(completions=api)).translate("Hello", "French")
    assert exc_info.value.stage is Stage.TRANSLATE


def test_resolve_language():
    """Names and codes resolve to (code, name); unknown values pass through."""
    assert resolve_language("Spanish") == ("es", "Spanish")
    assert resolve_language("es") == ("es", "Spanish")
    assert resolve_language(" FRENCH ") == ("fr", "French")
    assert resolve_language("Klingon") == ("klingon", "Klingon")
    assert get_language_name("de") == "German"


def install_faster_whisper(monkeypatch, model_cls):
    module = ModuleType("faster_whisper")
    module.WhisperModel = model_cls
    monkeypatch.setitem(sys.modules, "faster_whisper", module)


def test_local_model_load_failure_is_wrapped(monkeypatch, tmp_path):
    """A model that cannot be downloaded or loaded is a TranscriptionFailed."""

    class BrokenModel:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("model download failed")

    install_faster_whisper(monkeypatch, BrokenModel)
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"mp3")

    with pytest.raises(TranscriptionFailed) as exc_info:
        LocalWhisperTranscriber("tiny.en").transcribe(audio)

    assert exc_info.value.stage is Stage.TRANSCRIBE
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert "tiny.en" in str(exc_info.value)


def test_local_transcription_joins_segments(monkeypatch, tmp_path):
    """Segment texts are stripped and joined with spaces."""

    class Model:
        def __init__(self, name, device, compute_type):
            self.name = name

        def transcribe(self, path, **kwargs):
            segments = [SimpleNamespace(text=" Hello "), SimpleNamespace(text="world. ")]
            return iter(segments), None

    install_faster_whisper(monkeypatch, Model)
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"mp3")

    assert LocalWhisperTranscriber().transcribe(audio) == "Hello world."
