from __future__ import annotations

SYSTEM_PROMPT = "Professional interview evaluator. Return ONLY JSON."


def build_feedback_prompt(
    *,
    role: str,
    question: str,
    answer: str,
    time_limit_seconds: int,
    remaining_seconds: int,
) -> str:
    """
    Single prompt builder shared by all coaches.
    Actual time is the elapsed part of the limit, never negative.
    """
    actual = max(0, int(time_limit_seconds) - int(remaining_seconds))

    return f"""Act as an elite expert interview coach. Analyze the candidate response.
Role: {role}, Question: "{question}", Target: {int(time_limit_seconds)}s, Actual: {actual}s.
Answer: "{answer}"

Task:
1. Identify specific mistakes (filler words, weak phrasing, logical gaps).
2. Create an "annotatedAnswer" string where you follow each mistake with a bracketed note like this: [Comment: <issue description>]. Example: "I actually [Comment: Filler word] think..."
   Never use the "]" character inside a note and never nest notes.
3. Provide a "sampleAnswer" that is professional, clear, and perfectly timed.
4. Score communication, structure, relevance and timing as integers from 0 to 100.

Output exactly in JSON:
{{
  "feedback": {{
    "mistakes": ["Point 1", "Point 2"],
    "annotatedAnswer": "User Transcript with [Comment: ...] markers",
    "explanation": "Brief overview.",
    "sampleAnswer": "Model answer.",
    "scores": {{ "communication": 75, "structure": 80, "relevance": 90, "timing": 100 }}
  }}
}}
"""
