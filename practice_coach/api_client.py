"""Async HTTP client for the practice backend (/api/questions, /api/transcribe, /api/analyze)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from practice_coach.config import Config
from practice_coach.errors import MalformedFeedback, TranscriptionFailed, UpstreamUnavailable
from practice_coach.logging import get_logger
from practice_coach.models import AudioArtifact, FeedbackResult, Question
from practice_coach.schema import parse_feedback

logger = get_logger("api_client")


class PracticeApiClient:
    """Talks to a running backend; usable as both transcriber and coach of a PracticeSession."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or f"http://{Config.HOST}:{Config.PORT}").rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or Config.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("[API] %s %s failed: %s", method, url, e)
            raise UpstreamUnavailable(f"Backend unreachable: {e}") from e

    async def questions(self) -> List[Question]:
        r = await self._request("GET", "/api/questions")
        if r.is_error:
            raise UpstreamUnavailable(f"Could not load questions (HTTP {r.status_code})", status_code=r.status_code)
        return [Question(id=str(q["id"]), role=q["role"], type=q["type"], question=q["question"]) for q in r.json()]

    async def transcribe(self, artifact: AudioArtifact) -> str:
        files = {"audio": (artifact.filename, artifact.data, artifact.mime_type)}
        r = await self._request("POST", "/api/transcribe", files=files)
        body = _json_or_empty(r)
        if r.is_error:
            raise TranscriptionFailed(str(body.get("error") or "Transcription failed."), status_code=r.status_code)

        text = str(body.get("text") or "").strip()
        if not text:
            raise TranscriptionFailed("No text returned from transcription.")
        return text

    async def analyze(
        self,
        question: str,
        answer_text: str,
        role: str,
        time_limit_seconds: int,
        remaining_seconds: int,
    ) -> FeedbackResult:
        payload = {
            "question": question,
            "answer": answer_text,
            "role": role,
            "timeLimit": int(time_limit_seconds),
            "remainingTime": int(remaining_seconds),
        }
        r = await self._request("POST", "/api/analyze", json=payload)
        body = _json_or_empty(r)
        if r.is_error:
            feedback = body.get("feedback") if isinstance(body.get("feedback"), dict) else {}
            reason = feedback.get("explanation") or body.get("error") or "Analysis failed."
            raise UpstreamUnavailable(str(reason), status_code=r.status_code)

        feedback = body.get("feedback")
        if not isinstance(feedback, dict):
            raise MalformedFeedback("Response has no feedback object")
        return parse_feedback(feedback)

    async def health(self) -> Dict[str, Any]:
        r = await self._request("GET", "/api/health")
        return _json_or_empty(r)


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
