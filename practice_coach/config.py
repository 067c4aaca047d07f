"""Configuration management for API keys and settings."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in practice_coach/, .env is in project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

# Values shipped in .env.example that must be treated as "no key configured"
PLACEHOLDER_KEYS = {"", "your_key_here"}

DEFAULT_QUESTIONS_PATH = Path(__file__).parent / "data" / "questions.json"


class Config:
    """Application configuration from environment variables."""

    # One credential covers both speech-to-text and text generation
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")

    # Coach settings
    COACH_TYPE: str = os.getenv("COACH_TYPE", "openai")  # "openai" or "ollama"

    # Ollama settings (no API key needed, it's local)
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:4b")

    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "90"))

    QUESTIONS_PATH: str = os.getenv("QUESTIONS_PATH", str(DEFAULT_QUESTIONS_PATH))

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8010"))

    @classmethod
    def openai_key(cls) -> Optional[str]:
        """Return the OpenAI key, or None when unset or still the placeholder."""
        key = (cls.OPENAI_API_KEY or "").strip()
        if key in PLACEHOLDER_KEYS:
            return None
        return key

    @classmethod
    def is_mock_mode(cls) -> bool:
        return cls.openai_key() is None

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing or invalid settings.

        Nothing here is fatal: a missing key only switches the relays to their
        mock responses.
        """
        problems = []

        if cls.is_mock_mode():
            problems.append("OPENAI_API_KEY (missing or placeholder; mock transcription and feedback enabled)")

        if cls.COACH_TYPE.lower() not in ("openai", "ollama"):
            problems.append(f"COACH_TYPE '{cls.COACH_TYPE}' is not one of: openai, ollama")

        if not Path(cls.QUESTIONS_PATH).exists():
            problems.append(f"QUESTIONS_PATH '{cls.QUESTIONS_PATH}' does not exist")

        return problems
