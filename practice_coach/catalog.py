"""Static question catalog and the role/type filter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Optional, Union

from practice_coach.config import Config
from practice_coach.logging import get_logger
from practice_coach.models import Question

ANY_ROLE = "Any Role"
ALL_TYPES = "All Types"

ROLES = [
    "Frontend Engineer",
    "Backend Engineer",
    "Full Stack Developer",
    "Data/ML Engineer",
    "Product Manager",
    ANY_ROLE,
]

logger = get_logger("catalog")


def matches(question: Question, role: str, qtype: str) -> bool:
    role_match = role == ANY_ROLE or question.role == role or question.role == ANY_ROLE
    type_match = qtype == ALL_TYPES or question.type == qtype
    return role_match and type_match


class QuestionCatalog:
    """Ordered, read-only collection of questions."""

    def __init__(self, questions: Iterable[Question]):
        self._questions: List[Question] = list(questions)
        seen = set()
        for q in self._questions:
            if q.id in seen:
                raise ValueError(f"Duplicate question id: {q.id}")
            seen.add(q.id)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "QuestionCatalog":
        path = Path(path or Config.QUESTIONS_PATH)
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        questions = [
            Question(id=str(r["id"]), role=r["role"], type=r["type"], question=r["question"])
            for r in raw
        ]
        logger.info("[Catalog] Loaded %d questions from %s", len(questions), path)
        return cls(questions)

    def __len__(self):
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def all(self) -> List[Question]:
        return list(self._questions)

    def get(self, question_id: str) -> Optional[Question]:
        for q in self._questions:
            if q.id == question_id:
                return q
        return None

    def types(self) -> List[str]:
        """ALL_TYPES followed by each distinct type in catalog order."""
        out = [ALL_TYPES]
        for q in self._questions:
            if q.type not in out:
                out.append(q.type)
        return out

    def filter(self, role: str, qtype: str) -> List[Question]:
        return [q for q in self._questions if matches(q, role, qtype)]
