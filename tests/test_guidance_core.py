from __future__ import annotations

from exam_trainer.guidance import (
    STARTER_TIPS,
    GuidancePolicy,
    Trend,
    guidance_for_result,
    next_recommended_test,
    performance_snapshot,
    performance_trend,
    score_band,
    tips_for_history,
    tips_for_result,
    weakest_topic,
)
from exam_trainer.models import TestSummary
from exam_trainer.results import TestResult


def _r(score: int, *, test_id: str = "t", minutes: int = 20, sections: dict[str, int] | None = None,
       weaknesses: tuple[str, ...] = ()) -> TestResult:
    return TestResult(
        test_id=test_id,
        score_percent=score,
        correct_count=0,
        wrong_count=0,
        unattempted_count=0,
        time_taken_minutes=minutes,
        section_wise_accuracy=sections or {},
        topic_weaknesses=weaknesses,
        exam_id="ssc",
        category_id="quant",
    )


def _s(tid: str, exam_id: str = "ssc", category_id: str = "quant") -> TestSummary:
    return TestSummary(id=tid, title=tid, num_questions=10, exam_id=exam_id, category_id=category_id)


def test_score_bands() -> None:
    assert [score_band(s) for s in (0, 39, 40, 59, 60, 79, 80, 100)] == [
        "low", "low", "mid", "mid", "high", "high", "top", "top",
    ]


def test_result_tips_list_up_to_three_focus_areas() -> None:
    tips = tips_for_result(_r(30, weaknesses=("A", "B", "C", "D")))
    assert tips[0] == "Focus on building fundamental concepts in this subject."
    assert tips[-1] == "Focus areas: A, B, C"
    assert not any(t.startswith("Focus areas") for t in tips_for_result(_r(90)))


def test_guidance_recommends_other_tests_in_same_category() -> None:
    summaries = [_s("t"), _s("t2"), _s("t3", category_id="verbal"), _s("t4"), _s("t5"), _s("t6")]
    g = guidance_for_result(_r(50), summaries)
    assert g.recommended_category == "Practice more in this category"
    assert [s.id for s in g.recommended_tests] == ["t2", "t4", "t5"]
    assert guidance_for_result(_r(60)).recommended_category == "Try advanced tests"


def test_trend_compares_recent_window_with_overall_mean() -> None:
    assert performance_trend([]) is Trend.STEADY
    improving = [_r(s) for s in (40, 40, 40, 40, 40, 60, 60, 60, 60, 60)]
    assert performance_trend(improving) is Trend.IMPROVING
    declining = [_r(s) for s in (80, 80, 80, 80, 80, 60, 60, 60, 60, 60)]
    assert performance_trend(declining) is Trend.DECLINING
    # Overall 55, recent 60: a difference of exactly five counts.
    boundary = [_r(s) for s in (50, 50, 50, 50, 50, 60, 60, 60, 60, 60)]
    assert performance_trend(boundary) is Trend.IMPROVING
    assert performance_trend([_r(70), _r(72)]) is Trend.STEADY


def test_weakest_topic_is_below_threshold_only() -> None:
    history = [
        _r(50, sections={"Math": 50, "Science": 80}),
        _r(50, sections={"Math": 60, "English": 40}),
    ]
    assert weakest_topic(history) == "English"
    assert weakest_topic([_r(90, sections={"Math": 60})]) is None
    assert weakest_topic([_r(90, sections={"Math": 60})], GuidancePolicy(weak_topic_threshold=70.0)) == "Math"


def test_history_tips() -> None:
    assert tips_for_history([]) == list(STARTER_TIPS)

    tips = tips_for_history([_r(50, minutes=58, sections={"Math": 30})])
    assert tips == [
        "Your performance is steady. Try challenging yourself with harder tests.",
        "Focus on Math - accuracy is below 60%.",
        "Take more tests to build momentum and confidence.",
        "Work on time management - you're using most of the allotted time.",
    ]

    many = tips_for_history([_r(70, minutes=10) for _ in range(10)])
    assert "Great practice frequency! Consider attempting full-length tests." in many
    assert not any("time management" in t for t in many)


def test_performance_snapshot_uses_last_five_results() -> None:
    history = [_r(score, sections={"Math": score}) for score in (10, 20, 30, 40, 50, 61, 70)]
    snap = performance_snapshot(history)
    assert [p.label for p in snap.score_history] == ["Test 3", "Test 4", "Test 5", "Test 6", "Test 7"]
    assert [p.score for p in snap.score_history] == [30, 40, 50, 61, 70]
    assert snap.total_tests == 7
    assert snap.average_score == 40
    assert snap.subject_accuracy == {"Math": 40}
    assert performance_snapshot([]).total_tests == 0


def test_next_recommended_test() -> None:
    summaries = [_s("a"), _s("b"), _s("c", exam_id="upsc")]
    assert next_recommended_test([], summaries).id == "a"
    assert next_recommended_test([_r(50, test_id="a")], summaries).id == "b"

    attempted_all = [_r(70, test_id="a"), _r(40, test_id="b")]
    assert next_recommended_test(attempted_all, summaries, exam_ids=["ssc"]).id == "b"
    assert next_recommended_test([], summaries, exam_ids=["none"]) is None
