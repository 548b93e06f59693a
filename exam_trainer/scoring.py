"""Pure scoring for a submitted attempt.

``score_attempt`` turns a test plus the final ledger snapshot into a
``TestResult``. It reads no clock and touches no storage: the time inputs are
passed in, so scoring the same inputs twice yields equal results.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from enum import Enum

from .models import Answer, Question, Test
from .results import TestResult


class AnswerStatus(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    UNATTEMPTED = "unattempted"


def round_half_up(x: float) -> int:
    # Nearest integer, halves rounded up (12.5 -> 13), unlike round().
    return int(math.floor(x + 0.5))


def percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100.0)


def answer_matches(question: Question, value: Answer) -> bool:
    """Exact match against the question's answer key.

    Index keys compare by integer equality (a bool is never an index);
    string keys compare case-sensitively.
    """

    if question.correct_index is not None:
        return isinstance(value, int) and not isinstance(value, bool) and value == question.correct_index
    if question.correct_answer is not None:
        return isinstance(value, str) and value == question.correct_answer
    return False


def classify_answer(question: Question, answers: Mapping[str, Answer]) -> AnswerStatus:
    if question.id not in answers:
        return AnswerStatus.UNATTEMPTED
    if answer_matches(question, answers[question.id]):
        return AnswerStatus.CORRECT
    return AnswerStatus.WRONG


def unknown_answer_ids(test: Test, answers: Mapping[str, Answer]) -> list[str]:
    known = {q.id for q in test.questions}
    return [qid for qid in answers if qid not in known]


def time_taken_minutes(
    test: Test,
    *,
    remaining_s: int | None = None,
    elapsed_s: float | None = None,
) -> int:
    """Whole minutes spent, never negative and never above a timed test's duration."""

    if test.duration_s is not None:
        duration_min = math.ceil(test.duration_s / 60)
        if remaining_s is not None:
            taken = duration_min - math.floor(max(0, remaining_s) / 60)
        elif elapsed_s is not None:
            taken = math.ceil(max(0.0, elapsed_s) / 60)
        else:
            taken = duration_min
        return max(0, min(duration_min, taken))

    if elapsed_s is None:
        return 0
    return max(0, math.ceil(elapsed_s / 60))


def score_attempt(
    test: Test,
    answers: Mapping[str, Answer],
    *,
    remaining_s: int | None = None,
    elapsed_s: float | None = None,
    completed_at: str | None = None,
    flagged: Iterable[str] = (),
) -> TestResult:
    """Score a final ledger snapshot against the test's answer key.

    Subjective questions are left out of every count. Ledger entries whose id
    is not in the test are ignored and dropped from the stored snapshot.
    """

    correct = 0
    wrong = 0
    unattempted = 0
    weaknesses: list[str] = []
    topic_totals: dict[str, int] = {}
    topic_correct: dict[str, int] = {}

    for q in test.scoreable_questions:
        status = classify_answer(q, answers)
        if status is AnswerStatus.CORRECT:
            correct += 1
        elif status is AnswerStatus.WRONG:
            wrong += 1
            if q.topic and q.topic not in weaknesses:
                weaknesses.append(q.topic)
        else:
            unattempted += 1

        if q.topic:
            topic_totals[q.topic] = topic_totals.get(q.topic, 0) + 1
            if status is AnswerStatus.CORRECT:
                topic_correct[q.topic] = topic_correct.get(q.topic, 0) + 1

    known = {q.id for q in test.questions}
    snapshot = {qid: value for qid, value in answers.items() if qid in known}

    return TestResult(
        test_id=test.id,
        exam_id=test.exam_id,
        category_id=test.category_id,
        score_percent=percent(correct, len(test.scoreable_questions)),
        correct_count=correct,
        wrong_count=wrong,
        unattempted_count=unattempted,
        time_taken_minutes=time_taken_minutes(test, remaining_s=remaining_s, elapsed_s=elapsed_s),
        section_wise_accuracy={t: percent(topic_correct.get(t, 0), n) for t, n in topic_totals.items()},
        topic_weaknesses=tuple(weaknesses),
        answers=snapshot,
        flagged=tuple(sorted(f for f in flagged if f in known)),
        completed_at=completed_at,
    )
