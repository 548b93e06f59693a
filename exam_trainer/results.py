from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import Answer


@dataclass(frozen=True, slots=True)
class TestResult:
    """Persistable outcome of one submitted session.

    Created exactly once per session by the scoring engine and never edited.
    ``correct_count + wrong_count + unattempted_count`` equals the number of
    scoreable questions in the test.
    """

    test_id: str
    score_percent: int
    correct_count: int
    wrong_count: int
    unattempted_count: int
    time_taken_minutes: int
    section_wise_accuracy: dict[str, int] = field(default_factory=dict)
    topic_weaknesses: tuple[str, ...] = ()
    answers: dict[str, Answer] = field(default_factory=dict)
    flagged: tuple[str, ...] = ()
    exam_id: str | None = None
    category_id: str | None = None
    completed_at: str | None = None

    __test__ = False

    @property
    def scoreable_count(self) -> int:
        return self.correct_count + self.wrong_count + self.unattempted_count


def result_to_dict(result: TestResult) -> dict[str, Any]:
    return {
        "test_id": result.test_id,
        "exam_id": result.exam_id,
        "category_id": result.category_id,
        "score_percent": int(result.score_percent),
        "correct_count": int(result.correct_count),
        "wrong_count": int(result.wrong_count),
        "unattempted_count": int(result.unattempted_count),
        "time_taken_minutes": int(result.time_taken_minutes),
        "section_wise_accuracy": dict(result.section_wise_accuracy),
        "topic_weaknesses": list(result.topic_weaknesses),
        "answers": dict(result.answers),
        "flagged": list(result.flagged),
        "completed_at": result.completed_at,
    }


def result_from_dict(data: Mapping[str, Any]) -> TestResult:
    return TestResult(
        test_id=str(data["test_id"]),
        exam_id=data.get("exam_id"),
        category_id=data.get("category_id"),
        score_percent=int(data["score_percent"]),
        correct_count=int(data["correct_count"]),
        wrong_count=int(data["wrong_count"]),
        unattempted_count=int(data["unattempted_count"]),
        time_taken_minutes=int(data.get("time_taken_minutes", 0)),
        section_wise_accuracy={str(k): int(v) for k, v in dict(data.get("section_wise_accuracy") or {}).items()},
        topic_weaknesses=tuple(str(t) for t in data.get("topic_weaknesses") or ()),
        answers=dict(data.get("answers") or {}),
        flagged=tuple(str(f) for f in data.get("flagged") or ()),
        completed_at=data.get("completed_at"),
    )
