"""Practice-session state machine.

Selection -> Practice -> Analysis, with reset (Analysis -> Selection), retry
(Analysis -> Practice, same question) and cancel (Practice -> Selection).

Everything runs on one asyncio loop. Transcription and analysis calls are
never cancelled; when they resolve after the user has moved on, the result
is dropped by comparing the attempt it was started for with the current one.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from practice_coach.capture import CaptureController
from practice_coach.catalog import ALL_TYPES, QuestionCatalog, matches
from practice_coach.errors import (
    DeviceUnavailable,
    InvalidTransition,
    MalformedFeedback,
    PracticeError,
    TranscriptionFailed,
    UpstreamUnavailable,
    ValidationError,
)
from practice_coach.logging import get_logger
from practice_coach.models import AudioArtifact, FeedbackResult, Question, RecordingState, Step
from practice_coach.schema import degraded_feedback

logger = get_logger("session")

TIME_LIMITS = (30, 60, 120)
DEFAULT_ROLE = "Frontend Engineer"
DEFAULT_TIME_LIMIT = 60


@runtime_checkable
class TranscriptionClient(Protocol):
    async def transcribe(self, artifact: AudioArtifact) -> str: ...


@runtime_checkable
class FeedbackClient(Protocol):
    async def analyze(
        self,
        question: str,
        answer_text: str,
        role: str,
        time_limit_seconds: int,
        remaining_seconds: int,
    ) -> FeedbackResult: ...


@dataclass
class PracticeAttempt:
    question: Question
    time_limit_seconds: int
    remaining_seconds: int
    answer_text: str = ""
    recording_state: RecordingState = RecordingState.IDLE
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def elapsed_seconds(self) -> int:
        return self.time_limit_seconds - self.remaining_seconds


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view handed to whatever renders the session."""
    step: Step
    selected_role: str
    selected_type: str
    selected_question: Optional[Question]
    time_limit_seconds: int
    remaining_seconds: Optional[int]
    answer_text: str
    recording_state: RecordingState
    loading: bool
    feedback: Optional[FeedbackResult]
    error: Optional[str]


class PracticeSession:
    """Explicit state machine for one user practising one question at a time.

    The in-process relays (Transcriber, BaseCoach) and PracticeApiClient
    both satisfy TranscriptionClient and FeedbackClient.
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        transcriber: TranscriptionClient,
        coach: FeedbackClient,
        capture: Optional[CaptureController] = None,
        *,
        role: str = DEFAULT_ROLE,
        question_type: str = ALL_TYPES,
        time_limit_seconds: int = DEFAULT_TIME_LIMIT,
        tick_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if time_limit_seconds not in TIME_LIMITS:
            raise ValidationError(f"Time limit must be one of {TIME_LIMITS}")
        self.catalog = catalog
        self.transcriber = transcriber
        self.coach = coach
        self.capture = capture or CaptureController()
        self.tick_interval = tick_interval
        self._sleep = sleep

        self.step = Step.SELECTION
        self.selected_role = role
        self.selected_type = question_type
        self.selected_question: Optional[Question] = None
        self.time_limit_seconds = time_limit_seconds

        self.attempt: Optional[PracticeAttempt] = None
        self.feedback: Optional[FeedbackResult] = None
        self.loading = False
        self.error: Optional[str] = None

        self._countdown: Optional[asyncio.Task] = None
        self._expiry: Optional[asyncio.Task] = None

    # ----------------- selection -----------------
    def filtered_questions(self) -> List[Question]:
        return self.catalog.filter(self.selected_role, self.selected_type)

    def set_role(self, role: str) -> None:
        self._require_step(Step.SELECTION)
        self.selected_role = role
        self._revalidate_selection()

    def set_type(self, question_type: str) -> None:
        self._require_step(Step.SELECTION)
        self.selected_type = question_type
        self._revalidate_selection()

    def set_time_limit(self, seconds: int) -> None:
        self._require_step(Step.SELECTION)
        if seconds not in TIME_LIMITS:
            raise ValidationError(f"Time limit must be one of {TIME_LIMITS}")
        self.time_limit_seconds = seconds

    def select_question(self, question: Question) -> None:
        self._require_step(Step.SELECTION)
        if not any(q.id == question.id for q in self.filtered_questions()):
            raise ValidationError(f"Question '{question.id}' does not match the current role/type filter")
        self.selected_question = question

    def _revalidate_selection(self) -> None:
        q = self.selected_question
        if q is not None and not matches(q, self.selected_role, self.selected_type):
            logger.debug("[Session] Clearing selection %s after filter change", q.id)
            self.selected_question = None

    # ----------------- practice -----------------
    def start_practice(self) -> PracticeAttempt:
        self._require_step(Step.SELECTION)
        return self._new_attempt()

    def _new_attempt(self) -> PracticeAttempt:
        if self.selected_question is None:
            raise ValidationError("Select a question before starting practice")
        self._stop_countdown()
        self.capture.close()
        self.attempt = PracticeAttempt(
            question=self.selected_question,
            time_limit_seconds=self.time_limit_seconds,
            remaining_seconds=self.time_limit_seconds,
        )
        self.step = Step.PRACTICE
        self.feedback = None
        self.loading = False
        self.error = None
        logger.info("[Session] Practice started: question=%s limit=%ds", self.attempt.question.id, self.time_limit_seconds)
        return self.attempt

    def set_answer_text(self, text: str) -> None:
        attempt = self._require_step(Step.PRACTICE)
        attempt.answer_text = text

    async def start_capture(self) -> None:
        attempt = self._require_step(Step.PRACTICE)
        if attempt.recording_state != RecordingState.IDLE:
            raise InvalidTransition(f"Cannot start recording while {attempt.recording_state.value}")
        if attempt.remaining_seconds <= 0:
            raise InvalidTransition("No time left on this attempt; retry to start over")

        try:
            await self.capture.start()
        except DeviceUnavailable as e:
            if self._is_live(attempt, Step.PRACTICE):
                self.error = str(e)
            logger.warning("[Recording] Device unavailable: %s", e)
            raise

        if not self._is_live(attempt, Step.PRACTICE):
            # the user left while the permission prompt was open
            self.capture.close()
            return

        self.error = None
        attempt.recording_state = RecordingState.RECORDING
        self._countdown = asyncio.get_running_loop().create_task(self._run_countdown(attempt))

    def tick(self) -> int:
        """Advance the countdown by one second; at zero, stop the capture exactly once."""
        attempt = self.attempt
        if self.step != Step.PRACTICE or attempt is None or attempt.recording_state != RecordingState.RECORDING:
            return attempt.remaining_seconds if attempt else 0

        if attempt.remaining_seconds > 0:
            attempt.remaining_seconds -= 1
            if attempt.remaining_seconds == 0:
                logger.info("[Session] Time is up, stopping capture")
                self._expiry = asyncio.get_running_loop().create_task(self._expire(attempt))
        return attempt.remaining_seconds

    async def _run_countdown(self, attempt: PracticeAttempt) -> None:
        while (
            self._is_live(attempt, Step.PRACTICE)
            and attempt.recording_state == RecordingState.RECORDING
            and attempt.remaining_seconds > 0
        ):
            await self._sleep(self.tick_interval)
            if self._is_live(attempt, Step.PRACTICE):
                self.tick()

    async def _expire(self, attempt: PracticeAttempt) -> None:
        if self._is_live(attempt, Step.PRACTICE) and attempt.recording_state == RecordingState.RECORDING:
            await self.stop_capture()

    def _stop_countdown(self) -> None:
        task, self._countdown = self._countdown, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def stop_capture(self) -> None:
        """End the recording, transcribe it and feed the transcript to analysis."""
        attempt = self._require_step(Step.PRACTICE)
        if attempt.recording_state != RecordingState.RECORDING:
            raise InvalidTransition(f"Cannot stop recording while {attempt.recording_state.value}")

        attempt.recording_state = RecordingState.TRANSCRIBING
        self._stop_countdown()
        self.loading = True

        try:
            artifact = await self.capture.stop()
        except PracticeError:
            attempt.recording_state = RecordingState.IDLE
            self.loading = False
            raise

        if not self._is_live(attempt, Step.PRACTICE):
            self.capture.finish()
            return
        await self._transcribe_and_analyze(attempt, artifact)

    async def _transcribe_and_analyze(self, attempt: PracticeAttempt, artifact: AudioArtifact) -> None:
        try:
            text = await self.transcriber.transcribe(artifact)
        except (TranscriptionFailed, UpstreamUnavailable) as e:
            if not self._is_live(attempt, Step.PRACTICE):
                logger.info("[Transcription] Dropping stale failure for attempt %s", attempt.id)
                return
            logger.error("[Transcription] %s", e)
            self.capture.finish()
            attempt.recording_state = RecordingState.IDLE
            self.loading = False
            self.error = f"{e} You can still type your answer."
            return

        if not self._is_live(attempt, Step.PRACTICE):
            logger.info("[Transcription] Dropping stale transcript for attempt %s", attempt.id)
            return

        self.capture.finish()
        attempt.recording_state = RecordingState.IDLE
        attempt.answer_text = text
        await self.submit_for_analysis(text)

    # ----------------- analysis -----------------
    async def submit_for_analysis(self, text: str) -> Optional[FeedbackResult]:
        attempt = self._require_step(Step.PRACTICE)
        if not (text or "").strip():
            raise ValidationError("Answer text must not be empty")
        if attempt.recording_state != RecordingState.IDLE:
            raise InvalidTransition(f"Cannot submit while {attempt.recording_state.value}")

        attempt.answer_text = text
        self.step = Step.ANALYSIS
        self.loading = True
        self.feedback = None
        self.error = None

        try:
            result = await self.coach.analyze(
                question=attempt.question.question,
                answer_text=text,
                role=self.selected_role,
                time_limit_seconds=attempt.time_limit_seconds,
                remaining_seconds=attempt.remaining_seconds,
            )
        except MalformedFeedback as e:
            result = degraded_feedback("Malformed Feedback", str(e), text)
        except UpstreamUnavailable as e:
            result = degraded_feedback("Service Unavailable", str(e), text)
        except PracticeError as e:
            if self._is_live(attempt, Step.ANALYSIS):
                logger.error("[AI Analysis] %s", e)
                self.loading = False
                self.error = str(e) or "Failed to analyze response. Please try again."
            return None
        except Exception as e:
            logger.exception("[AI Analysis] Unexpected error")
            result = degraded_feedback("Service Unavailable", str(e), text)

        if not self._is_live(attempt, Step.ANALYSIS):
            logger.info("[AI Analysis] Dropping stale feedback for attempt %s", attempt.id)
            return None

        self.feedback = result
        self.loading = False
        return result

    # ----------------- backward transitions -----------------
    def cancel(self) -> None:
        """Practice -> Selection. In-flight calls keep running; their results are ignored."""
        self._require_step(Step.PRACTICE)
        self._discard_attempt()

    def reset(self) -> None:
        """Analysis -> Selection."""
        self._require_step(Step.ANALYSIS)
        self._discard_attempt()

    def retry(self) -> PracticeAttempt:
        """Analysis -> Practice with the same question and a fresh attempt."""
        self._require_step(Step.ANALYSIS)
        return self._new_attempt()

    def _discard_attempt(self) -> None:
        self._stop_countdown()
        self.capture.close()
        self.attempt = None
        self.feedback = None
        self.loading = False
        self.error = None
        self.step = Step.SELECTION

    # ----------------- lifecycle -----------------
    async def join(self) -> None:
        """Wait for a timer-triggered stop (and the calls it started) to finish."""
        task = self._expiry
        if task is not None:
            await task

    async def aclose(self) -> None:
        self._stop_countdown()
        expiry, self._expiry = self._expiry, None
        if expiry is not None and not expiry.done():
            expiry.cancel()
            try:
                await expiry
            except asyncio.CancelledError:
                pass
        self.capture.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    # ----------------- helpers -----------------
    def snapshot(self) -> SessionSnapshot:
        attempt = self.attempt
        return SessionSnapshot(
            step=self.step,
            selected_role=self.selected_role,
            selected_type=self.selected_type,
            selected_question=self.selected_question,
            time_limit_seconds=self.time_limit_seconds,
            remaining_seconds=attempt.remaining_seconds if attempt else None,
            answer_text=attempt.answer_text if attempt else "",
            recording_state=attempt.recording_state if attempt else RecordingState.IDLE,
            loading=self.loading,
            feedback=self.feedback,
            error=self.error,
        )

    def _require_step(self, step: Step) -> Optional[PracticeAttempt]:
        if self.step != step:
            raise InvalidTransition(f"Operation requires step '{step.value}', current step is '{self.step.value}'")
        return self.attempt

    def _is_live(self, attempt: PracticeAttempt, step: Step) -> bool:
        return self.attempt is attempt and self.step == step
