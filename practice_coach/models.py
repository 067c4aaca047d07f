"""Data models for the interview practice coach."""

from dataclasses import dataclass
from enum import Enum
from typing import List


class Step(str, Enum):
    SELECTION = "selection"
    PRACTICE = "practice"
    ANALYSIS = "analysis"


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


@dataclass(frozen=True)
class Question:
    """A single catalog entry."""
    id: str
    role: str
    type: str
    question: str

    def to_dict(self):
        return {
            "id": self.id,
            "role": self.role,
            "type": self.type,
            "question": self.question
        }


@dataclass(frozen=True)
class FeedbackScores:
    communication: int
    structure: int
    relevance: int
    timing: int

    def to_dict(self):
        return {
            "communication": self.communication,
            "structure": self.structure,
            "relevance": self.relevance,
            "timing": self.timing
        }


@dataclass(frozen=True)
class FeedbackResult:
    """Structured feedback for one analysed answer.

    annotated_answer is plain text with `[Comment: ...]` markers after the
    flagged spans (see practice_coach.annotation).
    """
    mistakes: List[str]
    annotated_answer: str
    explanation: str
    sample_answer: str
    scores: FeedbackScores

    def to_dict(self):
        return {
            "mistakes": list(self.mistakes),
            "annotatedAnswer": self.annotated_answer,
            "explanation": self.explanation,
            "sampleAnswer": self.sample_answer,
            "scores": self.scores.to_dict()
        }


@dataclass(frozen=True)
class AudioArtifact:
    """A finished recording, ready to upload for transcription."""
    data: bytes
    container: str = "wav"
    sample_rate: int = 16000

    @property
    def filename(self) -> str:
        return f"answer.{self.container}"

    @property
    def mime_type(self) -> str:
        return f"audio/{self.container}"

    def __len__(self):
        return len(self.data)
