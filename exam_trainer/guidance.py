"""Study guidance derived from submitted results.

Everything here is a pure function of one ``TestResult`` or of a user's
history (oldest first). Cutoffs live in ``GuidancePolicy`` so the rules can be
exercised with other thresholds in tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from .models import TestSummary
from .results import TestResult
from .scoring import round_half_up


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STEADY = "steady"


@dataclass(frozen=True, slots=True)
class GuidancePolicy:
    low_band: int = 40
    mid_band: int = 60
    high_band: int = 80
    focus_topic_limit: int = 3
    trend_window: int = 5
    trend_delta: float = 5.0
    weak_topic_threshold: float = 60.0
    few_tests: int = 5
    many_tests: int = 10
    time_reference_minutes: float = 60.0
    time_pressure_ratio: float = 0.9
    advance_score: int = 60
    max_recommended_tests: int = 3
    snapshot_window: int = 5


DEFAULT_POLICY = GuidancePolicy()

BAND_TIPS = {
    "low": (
        "Focus on building fundamental concepts in this subject.",
        "Consider attempting easier tests first to build confidence.",
    ),
    "mid": (
        "You're making progress! Focus on improving accuracy.",
        "Review questions you got wrong and understand the concepts.",
    ),
    "high": (
        "Good performance! Try harder difficulty tests to challenge yourself.",
        "Work on time management to improve speed.",
    ),
    "top": (
        "Excellent work! Maintain consistency with regular practice.",
        "Try full-length mock tests to simulate exam conditions.",
    ),
}

TREND_TIPS = {
    Trend.IMPROVING: "Your performance is improving! Keep up the good work.",
    Trend.DECLINING: "Your recent scores are declining. Review fundamentals.",
    Trend.STEADY: "Your performance is steady. Try challenging yourself with harder tests.",
}

STARTER_TIPS = (
    "Start with an easy test to assess your current level.",
    "Practice regularly for better results.",
)


@dataclass(frozen=True, slots=True)
class GuidanceResult:
    recommended_category: str
    recommended_tests: tuple[TestSummary, ...]
    text_tips: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ScorePoint:
    label: str
    score: int


@dataclass(frozen=True, slots=True)
class PerformanceSnapshot:
    score_history: tuple[ScorePoint, ...]
    subject_accuracy: dict[str, int]
    total_tests: int
    average_score: int


def score_band(score_percent: int, policy: GuidancePolicy = DEFAULT_POLICY) -> str:
    if score_percent < policy.low_band:
        return "low"
    if score_percent < policy.mid_band:
        return "mid"
    if score_percent < policy.high_band:
        return "high"
    return "top"


def tips_for_result(result: TestResult, policy: GuidancePolicy = DEFAULT_POLICY) -> list[str]:
    tips = list(BAND_TIPS[score_band(result.score_percent, policy)])
    if result.topic_weaknesses:
        focus = ", ".join(result.topic_weaknesses[: policy.focus_topic_limit])
        tips.append(f"Focus areas: {focus}")
    return tips


def guidance_for_result(
    result: TestResult,
    summaries: Iterable[TestSummary] = (),
    policy: GuidancePolicy = DEFAULT_POLICY,
) -> GuidanceResult:
    """Tips plus up to a few other tests from the same exam category."""

    others = [
        s
        for s in summaries
        if s.id != result.test_id
        and s.exam_id == result.exam_id
        and s.category_id == result.category_id
    ]
    if result.score_percent < policy.advance_score:
        category = "Practice more in this category"
    else:
        category = "Try advanced tests"
    return GuidanceResult(
        recommended_category=category,
        recommended_tests=tuple(others[: policy.max_recommended_tests]),
        text_tips=tuple(tips_for_result(result, policy)),
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def performance_trend(history: Sequence[TestResult], policy: GuidancePolicy = DEFAULT_POLICY) -> Trend:
    if not history:
        return Trend.STEADY
    overall = _mean([r.score_percent for r in history])
    recent = _mean([r.score_percent for r in history[-policy.trend_window :]])
    if recent - overall >= policy.trend_delta:
        return Trend.IMPROVING
    if overall - recent >= policy.trend_delta:
        return Trend.DECLINING
    return Trend.STEADY


def topic_accuracy(history: Iterable[TestResult]) -> dict[str, float]:
    """Mean section accuracy per topic, topics in first-seen order."""

    samples: dict[str, list[int]] = {}
    for result in history:
        for topic, accuracy in result.section_wise_accuracy.items():
            samples.setdefault(topic, []).append(accuracy)
    return {topic: _mean(values) for topic, values in samples.items()}


def weakest_topic(history: Iterable[TestResult], policy: GuidancePolicy = DEFAULT_POLICY) -> str | None:
    weakest: str | None = None
    lowest = policy.weak_topic_threshold
    for topic, avg in topic_accuracy(history).items():
        if avg < lowest:
            lowest = avg
            weakest = topic
    return weakest


def tips_for_history(history: Sequence[TestResult], policy: GuidancePolicy = DEFAULT_POLICY) -> list[str]:
    if not history:
        return list(STARTER_TIPS)

    tips = [TREND_TIPS[performance_trend(history, policy)]]

    topic = weakest_topic(history, policy)
    if topic is not None:
        tips.append(f"Focus on {topic} - accuracy is below {policy.weak_topic_threshold:g}%.")

    if len(history) < policy.few_tests:
        tips.append("Take more tests to build momentum and confidence.")
    elif len(history) >= policy.many_tests:
        tips.append("Great practice frequency! Consider attempting full-length tests.")

    time_ratio = _mean([r.time_taken_minutes / policy.time_reference_minutes for r in history])
    if time_ratio > policy.time_pressure_ratio:
        tips.append("Work on time management - you're using most of the allotted time.")

    return tips


def performance_snapshot(
    history: Sequence[TestResult],
    policy: GuidancePolicy = DEFAULT_POLICY,
) -> PerformanceSnapshot:
    if not history:
        return PerformanceSnapshot(score_history=(), subject_accuracy={}, total_tests=0, average_score=0)

    recent = history[-policy.snapshot_window :]
    offset = len(history) - len(recent)
    points = tuple(ScorePoint(label=f"Test {offset + i + 1}", score=r.score_percent) for i, r in enumerate(recent))
    return PerformanceSnapshot(
        score_history=points,
        subject_accuracy={t: round_half_up(avg) for t, avg in topic_accuracy(history).items()},
        total_tests=len(history),
        average_score=round_half_up(_mean([r.score_percent for r in history])),
    )


def next_recommended_test(
    history: Sequence[TestResult],
    summaries: Sequence[TestSummary],
    *,
    exam_ids: Iterable[str] | None = None,
) -> TestSummary | None:
    """First unattempted test, else a retake of the weakest attempt, else the first test."""

    candidates = list(summaries)
    if exam_ids is not None:
        wanted = set(exam_ids)
        candidates = [s for s in candidates if s.exam_id in wanted]
    if not candidates:
        return None

    attempted = {r.test_id for r in history}
    for summary in candidates:
        if summary.id not in attempted:
            return summary

    if history:
        lowest = min(history, key=lambda r: r.score_percent)
        for summary in candidates:
            if summary.id == lowest.test_id:
                return summary

    return candidates[0]
