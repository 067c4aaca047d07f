"""Ollama coach for running feedback against a local model."""

import asyncio

import requests

from practice_coach.config import Config
from practice_coach.errors import UpstreamUnavailable
from practice_coach.coaches.base_coach import BaseCoach


class OllamaCoach(BaseCoach):
    """Ollama-based coach. Needs no API key, so it never falls back to canned feedback."""

    name = "ollama"

    def __init__(self, ollama_url: str = None, model: str = None, session: requests.Session = None):
        """Initialize Ollama coach.

        Args:
            ollama_url: URL of Ollama server (defaults to Config.OLLAMA_URL)
            model: Model name to use (defaults to Config.OLLAMA_MODEL)
            session: Optional requests session, used by tests
        """
        self.ollama_url = (ollama_url or Config.OLLAMA_URL).rstrip("/")
        self.model = model or Config.OLLAMA_MODEL
        self.session = session or requests.Session()

    def _generate(self, system: str, prompt: str) -> str:
        try:
            response = self.session.post(
                f"{self.ollama_url}/api/generate",
                json={
                    "model": self.model,
                    "system": system,
                    "prompt": prompt,
                    "format": "json",
                    "stream": False
                },
                timeout=Config.REQUEST_TIMEOUT_SECONDS
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 404:
                reason = f"Model '{self.model}' not found. Install it with: ollama pull {self.model}"
            else:
                reason = f"HTTP Error {status}: {e}"
            raise UpstreamUnavailable(reason, status_code=status) from e
        except requests.exceptions.ConnectionError as e:
            raise UpstreamUnavailable(f"Cannot connect to Ollama at {self.ollama_url}. Please ensure Ollama is running.") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise UpstreamUnavailable(f"Ollama request failed: {e}") from e

        if not isinstance(result, dict):
            raise UpstreamUnavailable("Unexpected Ollama response shape")
        return result.get("response", "")

    async def complete(self, system: str, prompt: str) -> str:
        # requests is blocking; keep the event loop free while Ollama generates
        return await asyncio.to_thread(self._generate, system, prompt)
