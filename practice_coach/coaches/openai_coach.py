"""OpenAI chat-completions coach."""

from typing import Optional

import httpx

from practice_coach.config import Config
from practice_coach.errors import UpstreamUnavailable
from practice_coach.coaches.base_coach import BaseCoach


class OpenAICoach(BaseCoach):
    """Coach backed by the OpenAI chat completions REST endpoint."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize OpenAI coach.

        Args:
            api_key: OpenAI API key (defaults to Config.openai_key())
            model: Model name to use (defaults to Config.OPENAI_MODEL)
            base_url: API base URL (defaults to Config.OPENAI_BASE_URL)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key if api_key is not None else Config.openai_key()
        self.model = model or Config.OPENAI_MODEL
        self.base_url = (base_url or Config.OPENAI_BASE_URL).rstrip("/")
        self._transport = transport

    @property
    def is_mock(self) -> bool:
        return not self.api_key

    async def complete(self, system: str, prompt: str) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.4,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=Config.REQUEST_TIMEOUT_SECONDS, transport=self._transport) as client:
                r = await client.post(f"{self.base_url}/chat/completions", json=body, headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"OpenAI responded with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"OpenAI request failed: {e}") from e

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamUnavailable(f"Unexpected OpenAI response shape: {e}") from e
