"""Shared fixtures for unit tests."""

from typing import Any, Callable, List, Optional, Type

import httpx
import pytest

from voxrelay.config import reset_config

PROVIDER_ENV_VARS = (
    "GROQ_API_KEY",
    "ELEVENLABS_API_KEY",
    "SARVAM_API_KEY",
    "AZURE_SPEECH_KEY",
    "AZURE_SPEECH_REGION",
    "AZURE_SPEECH_ENDPOINT",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "GOOGLE_CLOUD_PROJECT",
    "GOOGLE_SPEECH_LOCATION",
    "GOOGLE_SPEECH_MODEL",
    "VOXRELAY_PROVIDER_PRIORITY",
    "VOXRELAY_REQUEST_TIMEOUT",
    "VOXRELAY_NOTIFY_ON_FAILURE",
    "VOXRELAY_LOG_LEVEL",
    "VOXRELAY_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep real credentials and any local .env file out of the tests.

    Every test starts with no provider keys in the environment, runs from a
    scratch directory and gets a fresh global config.
    """
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


class FakeVendor:
    """Stub vendor API that records every request it receives.

    Args:
        status_code: HTTP status of every response
        json_body: JSON body returned (ignored when ``text`` is set)
        text: Raw body text returned instead of JSON
        exc: httpx exception class raised instead of responding
    """

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        exc: Optional[Type[httpx.HTTPError]] = None,
    ):
        self.status_code = status_code
        self.json_body = {} if json_body is None else json_body
        self.text = text
        self.exc = exc
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc("simulated failure", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_vendor() -> Callable[..., FakeVendor]:
    """Factory for stub vendor APIs."""
    return FakeVendor


@pytest.fixture
def make_audio(tmp_path) -> Callable[..., Any]:
    """Factory writing a dummy audio file of a given size."""

    def _make(name: str = "sample.mp3", size: int = 1024):
        path = tmp_path / name
        path.write_bytes(b"\0" * size)
        return path

    return _make


@pytest.fixture
def audio_file(make_audio):
    """A small mp3 accepted by every provider."""
    return make_audio()


@pytest.fixture
def elevenlabs_payload():
    """ElevenLabs Scribe body for a three-word clip."""
    return {
        "language_code": "en",
        "language_probability": 0.98,
        "text": "hello world test",
        "words": [
            {"start": 0.0, "end": 0.4, "text": "hello", "type": "word"},
            {"start": 0.4, "end": 0.4, "text": " ", "type": "spacing"},
            {"start": 0.4, "end": 0.9, "text": "world", "type": "word"},
            {"start": 0.9, "end": 0.9, "text": " ", "type": "spacing"},
            {"start": 0.9, "end": 1.3, "text": "test", "type": "word"},
        ],
    }


@pytest.fixture
def groq_payload():
    """Groq verbose_json body with two segments."""
    return {
        "text": " Hello there. General Kenobi.",
        "language": "english",
        "duration": 3.2,
        "segments": [
            {"id": 0, "start": 0.0, "end": 1.5, "text": " Hello there.", "avg_logprob": -0.1},
            {"id": 1, "start": 1.5, "end": 3.2, "text": " General Kenobi.", "avg_logprob": -0.3},
        ],
    }
