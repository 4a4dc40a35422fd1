"""Google Cloud Speech-to-Text v2 (Chirp) transcription provider."""

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ..config import ProviderSettings
from ..errors import AuthenticationError, ConfigurationError, TransportError
from ..logging import get_logger
from .base import (
    MB,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    build_segments,
)

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

GOOGLE_LOCALES: Dict[str, str] = {
    "ml": "ml-IN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "te": "te-IN",
    "gu": "gu-IN",
    "kn": "kn-IN",
    "bn": "bn-IN",
    "mr": "mr-IN",
    "pa": "pa-IN",
    "en": "en-US",
    "es": "es-ES",
    "fr": "fr-FR",
    "de": "de-DE",
    "it": "it-IT",
    "pt": "pt-BR",
    "ru": "ru-RU",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "zh": "cmn-Hans-CN",
    "ar": "ar-EG",
}

# Chirp picks the language itself
AUTO_LANGUAGE = "auto"

_DURATION_STRING = re.compile(r"^(-?\d+(?:\.\d+)?)s$")


def parse_offset(value: Any) -> float:
    """Convert a protobuf Duration in any of its decoded shapes to seconds.

    Accepts the JSON form (``"1.500s"``), the field form
    (``{"seconds": "1", "nanos": 500000000}``) or a plain number.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _DURATION_STRING.match(value.strip())
        if match is None:
            raise ValueError(f"Unrecognized duration: {value!r}")
        return float(match.group(1))
    if isinstance(value, dict):
        return float(value.get("seconds") or 0) + float(value.get("nanos") or 0) / 1e9
    raise TypeError(f"Unrecognized duration: {value!r}")


def _get(mapping: Dict[str, Any], snake: str, camel: str) -> Any:
    """Read a field that may be snake_case (SDK) or camelCase (REST)."""
    if snake in mapping:
        return mapping[snake]
    return mapping.get(camel)


class GoogleProvider(TranscriptionProvider):
    """Transcription using Google Cloud Speech-to-Text v2 and the Chirp models.

    The credential is the path to a service-account JSON file, read from
    GOOGLE_APPLICATION_CREDENTIALS. The project comes from the settings,
    GOOGLE_CLOUD_PROJECT, or the ``project_id`` inside the credentials file.
    Requests go to the regional endpoint of the configured location through
    the official SDK (gRPC), so the httpx transport is not used.

    Synchronous recognition carries the audio inline, which caps uploads at
    10MB. Chirp does not diarize, so ``options.diarize`` is ignored.
    """

    DEFAULT_MODEL = "chirp_2"
    DEFAULT_LOCATION = "asia-south1"
    API_KEY_ENV = "GOOGLE_APPLICATION_CREDENTIALS"
    MAX_FILE_SIZE_BYTES = 10 * MB
    SUPPORTED_FORMATS = frozenset({"mp3", "wav", "flac", "ogg", "webm", "m4a"})
    SUPPORTED_LANGUAGES = frozenset(GOOGLE_LOCALES)
    COST_PER_HOUR_USD = 1.44

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Any = None,
    ):
        """Initialize provider.

        Args:
            settings: Provider settings (credentials path, project, location)
            transport: Accepted for a uniform constructor; unused
            client: Pre-built ``SpeechClient`` (tests inject a stub here)
        """
        super().__init__(settings, transport=transport)
        self.project: Optional[str] = self.settings.project
        self._injected_client = client
        self._client: Any = None
        self._client_credentials: Optional[str] = None

    @property
    def name(self) -> str:
        """Get provider name."""
        return "google"

    @property
    def location(self) -> str:
        """Cloud location of the recognizer (also selects the endpoint)."""
        return self.settings.region or self.DEFAULT_LOCATION

    @property
    def recognizer(self) -> str:
        """Resource name of the implicit recognizer."""
        return f"projects/{self.project}/locations/{self.location}/recognizers/_"

    def accept_credential(self, credential: str) -> bool:
        """Require an existing credentials file and a resolvable project."""
        credentials_file = Path(credential).expanduser()
        if not credentials_file.is_file():
            logger.warning(
                "Google credentials file not found - google provider unavailable",
                path=str(credentials_file),
            )
            return False

        project = (
            self.settings.project
            or os.getenv("GOOGLE_CLOUD_PROJECT")
            or _project_from_credentials(credentials_file)
        )
        if not project:
            logger.warning(
                "GOOGLE_CLOUD_PROJECT not set and credentials carry no project_id"
                " - google provider unavailable",
                path=str(credentials_file),
            )
            return False

        self.project = project
        return True

    def auth_headers(self) -> Dict[str, str]:
        # The SDK signs requests with the service-account credentials
        return {}

    def map_language_code(self, language: Optional[str]) -> str:
        """Map a short code to a Google locale (e.g. 'ml' -> 'ml-IN')."""
        if not language:
            return AUTO_LANGUAGE
        if "-" in language:
            return language
        return GOOGLE_LOCALES.get(language.lower(), AUTO_LANGUAGE)

    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        """Describe the ``RecognizeRequest`` (without the audio content)."""
        if options.diarize:
            logger.debug("Chirp does not support diarization; ignoring", provider=self.name)

        return {
            "recognizer": self.recognizer,
            "config": {
                "auto_decoding_config": {},
                "language_codes": [self.map_language_code(options.language)],
                "model": self.model,
                "features": {
                    "enable_automatic_punctuation": True,
                    "enable_word_time_offsets": options.timestamps,
                    "enable_word_confidence": True,
                },
            },
        }

    async def _send(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        """Run a synchronous recognize call in a worker thread."""
        from google.api_core import exceptions as google_exceptions
        from google.auth.exceptions import GoogleAuthError
        from google.cloud.speech_v2.types import cloud_speech

        request = self.build_request(path, options)
        try:
            request["content"] = path.read_bytes()
        except OSError as e:
            raise TransportError(f"Failed to read audio file: {e}", provider=self.name) from e

        client = self._get_client()
        timeout = self.settings.timeout_seconds

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.recognize,
                    request=cloud_speech.RecognizeRequest(request),
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, google_exceptions.DeadlineExceeded) as e:
            raise TransportError(
                f"{self.name} request timed out after {timeout:g}s", provider=self.name
            ) from e
        except google_exceptions.GoogleAPICallError as e:
            status = int(e.code) if e.code is not None else 500
            raise self.classify_status(status, e.message) from e
        except google_exceptions.RetryError as e:
            raise TransportError(f"{self.name} network error: {e}", provider=self.name) from e
        except GoogleAuthError as e:
            raise AuthenticationError(
                f"{self.name} rejected the service account: {e}", provider=self.name
            ) from e

        if isinstance(response, dict):
            return response
        return type(response).to_dict(response)

    def _get_client(self) -> Any:
        """SpeechClient for the current credentials file (rebuilt when it changes)."""
        if self._injected_client is not None:
            return self._injected_client
        if self._client is not None and self._client_credentials == self.api_key:
            return self._client

        from google.api_core.client_options import ClientOptions
        from google.auth.exceptions import GoogleAuthError
        from google.cloud import speech_v2
        from google.oauth2 import service_account

        try:
            credentials = service_account.Credentials.from_service_account_file(
                self.api_key, scopes=SCOPES
            )
        except (ValueError, OSError, GoogleAuthError) as e:
            raise ConfigurationError(
                f"Invalid Google service account file {self.api_key}: {e}", provider=self.name
            ) from e

        endpoint = (
            "speech.googleapis.com"
            if self.location == "global"
            else f"{self.location}-speech.googleapis.com"
        )
        self._client = speech_v2.SpeechClient(
            credentials=credentials,
            client_options=ClientOptions(api_endpoint=endpoint),
        )
        self._client_credentials = self.api_key
        logger.info(
            "Google Speech client created",
            provider=self.name,
            project=self.project,
            endpoint=endpoint,
        )
        return self._client

    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        results = raw.get("results") or []
        texts: List[str] = []
        entries: List[Any] = []
        previous_end = 0.0

        for result in results:
            alternatives = result.get("alternatives") or []
            if not alternatives:
                continue
            best = alternatives[0]
            transcript = best.get("transcript", "")
            texts.append(transcript)

            words = best.get("words") or []
            for word in words:
                entries.append(
                    (
                        parse_offset(_get(word, "start_offset", "startOffset")),
                        parse_offset(_get(word, "end_offset", "endOffset")),
                        word.get("word", ""),
                        word.get("confidence") or None,
                        _get(word, "speaker_label", "speakerLabel") or None,
                    )
                )

            result_end = parse_offset(_get(result, "result_end_offset", "resultEndOffset"))
            if not words and transcript.strip():
                # Word offsets were not requested: one segment per result
                entries.append((previous_end, result_end, transcript, best.get("confidence"), None))
            previous_end = max(previous_end, result_end)

        confidence = None
        language = None
        if results:
            first_alternatives = results[0].get("alternatives") or [{}]
            # Chirp reports 0.0 when it has no score
            confidence = first_alternatives[0].get("confidence") or None
            language_code = _get(results[0], "language_code", "languageCode")
            if isinstance(language_code, str) and language_code:
                language = language_code.split("-")[0].lower()

        return self._result(
            raw=raw,
            text=" ".join(t.strip() for t in texts if t.strip()),
            language=language,
            segments=build_segments(entries),
            confidence=confidence,
            processing_time_ms=processing_time_ms,
        )


def _project_from_credentials(credentials_file: Path) -> Optional[str]:
    """Read ``project_id`` from a service-account JSON file."""
    try:
        data = json.loads(credentials_file.read_text())
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    project = data.get("project_id")
    return project if isinstance(project, str) and project else None
