"""Navigation cursors for linear and adaptive tests.

Linear tests let the examinee move freely between questions. Adaptive tests
present one question at a time and pick the next step from how the last one
went; the branching thresholds live in ``AdaptivePolicy`` so the rule can be
tested apart from any particular cutoffs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .errors import IndexOutOfRangeError, InvalidStateError


class LinearCursor:
    """0-based index into a fixed question sequence; clamps at both ends."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("size must be >= 0")
        self._size = int(size)
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def size(self) -> int:
        return self._size

    @property
    def at_start(self) -> bool:
        return self._index == 0

    @property
    def at_end(self) -> bool:
        return self._size == 0 or self._index == self._size - 1

    def next(self) -> int:
        if self._index < self._size - 1:
            self._index += 1
        return self._index

    def previous(self) -> int:
        if self._index > 0:
            self._index -= 1
        return self._index

    def go_to(self, index: int) -> int:
        if not (0 <= index < self._size):
            raise IndexOutOfRangeError(index, self._size)
        self._index = index
        return self._index


class PerformanceSignal(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class Directive(str, Enum):
    SKIP_AHEAD = "skip_ahead"
    CONTINUE = "continue"
    INSERT_REMEDIAL = "insert_remedial"


DEFAULT_STRONG_THRESHOLD = 8.0
DEFAULT_WEAK_THRESHOLD = 5.0
DEFAULT_SCORE_SCALE = 10.0

DEFAULT_DIRECTIVES: Mapping[PerformanceSignal, Directive] = {
    PerformanceSignal.STRONG: Directive.SKIP_AHEAD,
    PerformanceSignal.MODERATE: Directive.CONTINUE,
    PerformanceSignal.WEAK: Directive.INSERT_REMEDIAL,
}

Outcome = bool | int | float | PerformanceSignal | None


@dataclass(frozen=True)
class AdaptivePolicy:
    """Score cutoffs and the signal -> directive table.

    ``score >= strong_threshold`` is strong, ``score < weak_threshold`` is weak,
    anything between is moderate. Scores are on ``0..scale``.
    """

    strong_threshold: float = DEFAULT_STRONG_THRESHOLD
    weak_threshold: float = DEFAULT_WEAK_THRESHOLD
    scale: float = DEFAULT_SCORE_SCALE
    directives: Mapping[PerformanceSignal, Directive] = field(
        default_factory=lambda: dict(DEFAULT_DIRECTIVES)
    )

    def __post_init__(self) -> None:
        if self.scale <= 0:
            raise ValueError("scale must be > 0")
        if not (0.0 <= self.weak_threshold <= self.strong_threshold <= self.scale):
            raise ValueError("expected 0 <= weak_threshold <= strong_threshold <= scale")
        missing = [s for s in PerformanceSignal if s not in self.directives]
        if missing:
            raise ValueError(f"directives missing for: {', '.join(s.value for s in missing)}")

    def signal_for(self, score: float) -> PerformanceSignal:
        if score >= self.strong_threshold:
            return PerformanceSignal.STRONG
        if score < self.weak_threshold:
            return PerformanceSignal.WEAK
        return PerformanceSignal.MODERATE

    def signal_for_outcome(self, outcome: Outcome) -> PerformanceSignal | None:
        """Normalize an outcome. ``None`` means no judgment is available."""

        if outcome is None:
            return None
        if isinstance(outcome, PerformanceSignal):
            return outcome
        if isinstance(outcome, bool):
            return self.signal_for(self.scale if outcome else 0.0)
        return self.signal_for(float(outcome))

    def directive_for(self, signal: PerformanceSignal | None) -> Directive:
        if signal is None:
            return Directive.CONTINUE
        return self.directives[signal]


@dataclass(frozen=True, slots=True)
class Step:
    question_id: str
    remedial: bool = False


class AdaptiveCursor:
    """One-question-at-a-time cursor whose path depends on prior outcomes.

    Remedial steps are inserted directly after the current position, so steps
    already completed keep their positions. A remedial step re-presents the
    same question; a weak outcome on a remedial step does not spawn another.
    """

    def __init__(self, question_ids: Sequence[str], *, policy: AdaptivePolicy | None = None) -> None:
        self._policy = policy or AdaptivePolicy()
        self._steps: list[Step] = [Step(qid) for qid in question_ids]
        self._position = 0
        self._completed: list[Step] = []
        self._skipped: list[Step] = []

    @property
    def policy(self) -> AdaptivePolicy:
        return self._policy

    @property
    def position(self) -> int:
        return self._position

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._steps)

    @property
    def current(self) -> Step | None:
        if self.exhausted:
            return None
        return self._steps[self._position]

    @property
    def sequence(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def completed(self) -> tuple[Step, ...]:
        return tuple(self._completed)

    @property
    def skipped(self) -> tuple[Step, ...]:
        return tuple(self._skipped)

    def advance(self, outcome: Outcome) -> Directive:
        """Complete the current step and move according to the policy."""

        step = self.current
        if step is None:
            raise InvalidStateError("adaptive sequence is exhausted")

        directive = self._policy.directive_for(self._policy.signal_for_outcome(outcome))
        if directive is Directive.INSERT_REMEDIAL and step.remedial:
            directive = Directive.CONTINUE

        self._completed.append(step)

        if directive is Directive.SKIP_AHEAD:
            skipped_at = self._position + 1
            if skipped_at < len(self._steps):
                self._skipped.append(self._steps[skipped_at])
            self._position = min(self._position + 2, len(self._steps))
        elif directive is Directive.INSERT_REMEDIAL:
            self._steps.insert(self._position + 1, Step(step.question_id, remedial=True))
            self._position += 1
        else:
            self._position += 1

        return directive
