"""Inline comment markers inside an annotated answer.

An annotated answer is the candidate's transcript where each flagged span is
followed by a marker of the form ``[Comment: <text>]``. Markers are never
nested and never contain ``]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

MARKER_PREFIX = "[Comment:"
MARKER_RE = re.compile(r"(\[Comment: [^\]]+\])")


@dataclass(frozen=True)
class AnnotationSpan:
    text: str
    is_comment: bool

    @property
    def comment(self) -> str:
        """Comment body without the surrounding marker, for comment spans."""
        if not self.is_comment:
            return ""
        return self.text[len(MARKER_PREFIX):-1].strip()


def split_annotated(text: str) -> List[AnnotationSpan]:
    """Split into alternating plain and comment spans, dropping empty plain spans."""
    if not text:
        return []
    spans: List[AnnotationSpan] = []
    for part in MARKER_RE.split(text):
        if not part:
            continue
        spans.append(AnnotationSpan(text=part, is_comment=bool(MARKER_RE.fullmatch(part))))
    return spans


def join_spans(spans: List[AnnotationSpan]) -> str:
    return "".join(s.text for s in spans)


def extract_comments(text: str) -> List[str]:
    return [s.comment for s in split_annotated(text) if s.is_comment]
