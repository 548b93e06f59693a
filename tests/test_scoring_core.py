from __future__ import annotations

from exam_trainer.models import Question, QuestionKind, Test
from exam_trainer.scoring import (
    AnswerStatus,
    answer_matches,
    classify_answer,
    percent,
    round_half_up,
    score_attempt,
    time_taken_minutes,
)


def _mcq(qid: str, correct: int, topic: str | None = None) -> Question:
    return Question(
        id=qid,
        prompt=f"Question {qid}",
        options=("a", "b", "c", "d"),
        correct_index=correct,
        topic=topic,
    )


def _five_question_test(topics: list[str | None] | None = None, duration_s: int | None = 600) -> Test:
    keys = [1, 0, 2, 1, 3]
    topics = topics or [None] * 5
    return Test(
        id="t1",
        questions=tuple(_mcq(f"q{i + 1}", k, t) for i, (k, t) in enumerate(zip(keys, topics))),
        duration_s=duration_s,
    )


def test_round_half_up() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(66.666) == 67
    assert round_half_up(0.49) == 0
    assert percent(1, 8) == 13
    assert percent(3, 0) == 0


def test_counts_and_score_for_partial_attempt() -> None:
    test = _five_question_test()
    answers = {"q1": 1, "q2": 1, "q3": 2, "q5": 3}

    r = score_attempt(test, answers)

    assert r.correct_count == 3
    assert r.wrong_count == 1
    assert r.unattempted_count == 1
    assert r.score_percent == 60
    assert r.scoreable_count == 5


def test_topic_accuracy_and_weaknesses() -> None:
    test = _five_question_test(["Math", "Math", "Science", "Science", "Math"])
    answers = {"q1": 1, "q2": 1, "q3": 2, "q5": 3}

    r = score_attempt(test, answers)

    assert r.section_wise_accuracy == {"Math": 67, "Science": 50}
    # q4 (Science) is unattempted, not wrong.
    assert r.topic_weaknesses == ("Math",)


def test_weaknesses_are_unique_in_first_seen_order() -> None:
    test = _five_question_test(["B", "A", "B", "A", None])
    r = score_attempt(test, {"q1": 0, "q2": 1, "q3": 0, "q4": 0, "q5": 0})
    assert r.topic_weaknesses == ("B", "A")
    assert r.wrong_count == 5


def test_scoring_is_deterministic() -> None:
    test = _five_question_test(["Math"] * 5)
    answers = {"q1": 1, "q2": 3}
    kwargs = dict(remaining_s=200, completed_at="2024-01-01T00:00:00Z", flagged=["q2"])
    assert score_attempt(test, answers, **kwargs) == score_attempt(test, answers, **kwargs)


def test_zero_scoreable_questions_scores_zero() -> None:
    test = Test(
        id="essay",
        questions=(Question(id="s1", prompt="Discuss.", kind=QuestionKind.SUBJECTIVE),),
    )
    r = score_attempt(test, {"s1": "Some thoughts"})
    assert r.score_percent == 0
    assert (r.correct_count, r.wrong_count, r.unattempted_count) == (0, 0, 0)
    assert r.answers == {"s1": "Some thoughts"}


def test_subjective_questions_are_excluded_from_counts() -> None:
    test = Test(
        id="mixed",
        questions=(
            _mcq("q1", 0, "Math"),
            Question(id="s1", prompt="Explain.", kind=QuestionKind.SUBJECTIVE, topic="Writing"),
        ),
    )
    r = score_attempt(test, {"q1": 0})
    assert r.score_percent == 100
    assert r.scoreable_count == 1
    assert "Writing" not in r.section_wise_accuracy


def test_unknown_answer_ids_are_ignored() -> None:
    test = _five_question_test()
    r = score_attempt(test, {"q1": 1, "ghost": 2}, flagged=["ghost", "q3"])
    assert r.correct_count == 1
    assert r.scoreable_count == 5
    assert r.answers == {"q1": 1}
    assert r.flagged == ("q3",)


def test_string_keys_are_exact_and_case_sensitive() -> None:
    tf = Question(id="tf", prompt="Sky is blue.", kind=QuestionKind.TRUE_FALSE, correct_answer="True")
    assert answer_matches(tf, "True") is True
    assert answer_matches(tf, "true") is False
    assert answer_matches(tf, 0) is False


def test_index_keys_never_match_bools() -> None:
    q = _mcq("q1", 1)
    assert answer_matches(q, 1) is True
    assert answer_matches(q, True) is False
    assert answer_matches(q, "1") is False


def test_classify_answer() -> None:
    q = _mcq("q1", 2)
    assert classify_answer(q, {}) is AnswerStatus.UNATTEMPTED
    assert classify_answer(q, {"q1": 2}) is AnswerStatus.CORRECT
    assert classify_answer(q, {"q1": 0}) is AnswerStatus.WRONG


def test_time_taken_from_remaining_seconds() -> None:
    test = _five_question_test(duration_s=600)
    assert time_taken_minutes(test, remaining_s=600) == 0
    assert time_taken_minutes(test, remaining_s=599) == 1
    assert time_taken_minutes(test, remaining_s=0) == 10
    assert time_taken_minutes(test) == 10


def test_time_taken_for_untimed_test_uses_elapsed() -> None:
    test = _five_question_test(duration_s=None)
    assert time_taken_minutes(test) == 0
    assert time_taken_minutes(test, elapsed_s=61.0) == 2
    assert time_taken_minutes(test, elapsed_s=0.0) == 0
