"""Transcriber abstraction for audio-to-text conversion."""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from practice_coach.config import Config
from practice_coach.errors import TranscriptionFailed, UpstreamUnavailable
from practice_coach.logging import get_logger
from practice_coach.models import AudioArtifact

logger = get_logger("transcriber")

MOCK_TRANSCRIPT = (
    "I'm sorry, to actually transcribe your voice you need to provide a real OpenAI API Key "
    "in the .env file. This is a mock response because the key is missing."
)


class Transcriber(ABC):
    """Abstract interface for transcription providers."""

    @abstractmethod
    async def transcribe(self, artifact: AudioArtifact) -> str:
        """Convert one finished recording into plain text.

        Args:
            artifact: Encoded audio with its container type

        Returns:
            Transcript text (never empty)

        Raises:
            TranscriptionFailed: upstream rejected the audio or returned no text
            UpstreamUnavailable: the service could not be reached
        """
        pass


class OpenAITranscriber(Transcriber):
    """OpenAI audio transcription (Whisper) over the REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.openai_key()
        self.model = model or Config.TRANSCRIPTION_MODEL
        self.base_url = (base_url or Config.OPENAI_BASE_URL).rstrip("/")
        self._transport = transport

    @property
    def is_mock(self) -> bool:
        return not self.api_key

    async def transcribe(self, artifact: AudioArtifact) -> str:
        logger.info("[Transcription] Received file: %s, size: %d bytes", artifact.filename, len(artifact.data))

        if self.is_mock:
            logger.warning("[Transcription] Missing or placeholder OpenAI API Key. Returning mock transcription.")
            return MOCK_TRANSCRIPT

        files = {"file": (artifact.filename, artifact.data, artifact.mime_type)}
        data = {"model": self.model}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=Config.REQUEST_TIMEOUT_SECONDS, transport=self._transport) as client:
                r = await client.post(f"{self.base_url}/audio/transcriptions", data=data, files=files, headers=headers)
        except httpx.HTTPError as e:
            logger.error("[Transcription] Request failed: %s", e)
            raise UpstreamUnavailable(f"Transcription service unreachable: {e}") from e

        if r.is_error:
            reason = _error_message(r) or "OpenAI transcription failed"
            logger.error("[Transcription] OpenAI Error (%s): %s", r.status_code, reason)
            raise TranscriptionFailed(reason, status_code=r.status_code)

        try:
            text = (r.json().get("text") or "").strip()
        except ValueError as e:
            raise TranscriptionFailed(f"Invalid transcription response: {e}", status_code=502) from e

        if not text:
            raise TranscriptionFailed("No text returned from transcription.")
        return text


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or "")
    return str(err or "")
