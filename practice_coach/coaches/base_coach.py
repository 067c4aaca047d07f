"""Abstract base class for AI feedback coaches."""

from abc import ABC, abstractmethod

from practice_coach.errors import MalformedFeedback, UpstreamUnavailable
from practice_coach.logging import get_logger
from practice_coach.models import FeedbackResult
from practice_coach.prompt import SYSTEM_PROMPT, build_feedback_prompt
from practice_coach.schema import canned_feedback, degraded_feedback, parse_completion

logger = get_logger("coach")


class BaseCoach(ABC):
    """Abstract base class for all coach implementations.

    Subclasses only provide the raw completion call; prompt building, parsing
    and degradation live here so every provider behaves the same.
    """

    name = "base"

    @property
    def is_mock(self) -> bool:
        """True when the coach has no credential and returns canned feedback."""
        return False

    @abstractmethod
    async def complete(self, system: str, prompt: str) -> str:
        """Request one completion.

        Args:
            system: Evaluator persona
            prompt: Templated instruction prompt

        Returns:
            Raw completion text

        Raises:
            UpstreamUnavailable: network error or non-success status
        """
        pass

    async def analyze(
        self,
        question: str,
        answer_text: str,
        role: str,
        time_limit_seconds: int,
        remaining_seconds: int,
    ) -> FeedbackResult:
        """Evaluate one answer. Never raises for upstream or parsing failures."""
        logger.info("[AI Analysis] Processing request for role: %s (coach=%s)", role, self.name)

        if self.is_mock:
            logger.warning("[AI Analysis] Missing API Key. Returning sample feedback.")
            return canned_feedback()

        prompt = build_feedback_prompt(
            role=role,
            question=question,
            answer=answer_text,
            time_limit_seconds=time_limit_seconds,
            remaining_seconds=remaining_seconds,
        )

        try:
            text = await self.complete(SYSTEM_PROMPT, prompt)
            return parse_completion(text)
        except MalformedFeedback as e:
            logger.error("[AI Analysis] Malformed feedback: %s", e)
            return degraded_feedback("Malformed Feedback", str(e), answer_text)
        except UpstreamUnavailable as e:
            logger.error("[AI Analysis] Upstream error: %s", e)
            return degraded_feedback("Service Unavailable", str(e), answer_text)
