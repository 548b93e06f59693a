from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .clock import Clock, CountdownClock
from .errors import InvalidStateError
from .ledger import AnswerLedger
from .models import Answer, Question, Test, validate_test
from .navigation import AdaptiveCursor, AdaptivePolicy, Directive, LinearCursor, Outcome
from .results import TestResult
from .scoring import answer_matches, score_attempt, unknown_answer_ids

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    ABANDONED = "abandoned"


class SubmitReason(str, Enum):
    MANUAL = "manual"
    TIME_EXPIRED = "time_expired"
    SEQUENCE_EXHAUSTED = "sequence_exhausted"


_DERIVE = object()


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data)."""

    title: str
    phase: Phase
    question_index: int
    question_count: int
    question: Question | None
    selected: Answer | None
    flagged: bool
    answered_count: int
    flagged_count: int
    time_remaining_s: int | None
    is_adaptive: bool
    remedial: bool = False


class ExamSession:
    """One attempt at a test: not_started -> in_progress -> submitted.

    - The countdown is advanced only by ``tick()``, which the host calls about
      once per second. Reaching zero submits the session.
    - ``submit()`` and the expiry path share one check-and-set on ``phase``;
      only the caller that flips ``in_progress -> submitted`` scores.
    - ``abandon()`` stops the clock and discards the ledger without scoring.
    """

    def __init__(
        self,
        *,
        test: Test,
        clock: Clock | None = None,
        wall_clock: Callable[[], str] | None = None,
        policy: AdaptivePolicy | None = None,
        on_submitted: Callable[[TestResult], None] | None = None,
    ) -> None:
        self._test = validate_test(test)
        self._clock = clock
        self._wall_clock = wall_clock
        self._on_submitted = on_submitted

        self._countdown = CountdownClock()
        self._ledger = AnswerLedger()
        self._linear: LinearCursor | None = None
        self._adaptive: AdaptiveCursor | None = None
        if test.is_adaptive:
            self._adaptive = AdaptiveCursor([q.id for q in test.questions], policy=policy)
        else:
            self._linear = LinearCursor(len(test.questions))

        self._phase = Phase.NOT_STARTED
        self._started_at: str | None = None
        self._started_mono_s: float | None = None
        self._result: TestResult | None = None
        self._submit_reason: SubmitReason | None = None

    @property
    def test(self) -> Test:
        return self._test

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def started_at(self) -> str | None:
        return self._started_at

    @property
    def result(self) -> TestResult | None:
        return self._result

    @property
    def submit_reason(self) -> SubmitReason | None:
        return self._submit_reason

    @property
    def is_adaptive(self) -> bool:
        return self._adaptive is not None

    @property
    def adaptive_cursor(self) -> AdaptiveCursor | None:
        return self._adaptive

    # -- Lifecycle ---------------------------------------------------------

    def start(self, *, started_at: str | None = None) -> None:
        if self._phase is not Phase.NOT_STARTED:
            raise InvalidStateError(f"cannot start a session that is {self._phase.value}")
        self._phase = Phase.IN_PROGRESS
        self._started_at = started_at if started_at is not None else self._stamp()
        if self._clock is not None:
            self._started_mono_s = self._clock.now()
        self._countdown.start(self._test.duration_s)
        logger.info(
            "session started: test=%s questions=%d duration_s=%s adaptive=%s",
            self._test.id,
            len(self._test.questions),
            self._test.duration_s,
            self.is_adaptive,
        )
        if not self._test.questions and self._adaptive is not None:
            # Nothing to present; an empty adaptive sequence is already exhausted.
            self._finalize(SubmitReason.SEQUENCE_EXHAUSTED)

    def tick(self) -> bool:
        """Advance the countdown by one second.

        Returns True only when this tick expired the clock and submitted the
        session. Ticks outside ``in_progress`` are no-ops.
        """

        if self._phase is not Phase.IN_PROGRESS:
            return False
        if not self._countdown.tick():
            return False
        logger.info("time expired: test=%s", self._test.id)
        return self._finalize(SubmitReason.TIME_EXPIRED) is not None

    def submit(self, *, completed_at: str | None = None, elapsed_s: float | None = None) -> TestResult:
        """Finalize and score. A second call returns the first result unchanged."""

        if self._phase is Phase.SUBMITTED:
            assert self._result is not None
            return self._result
        self._require_in_progress("submit")
        result = self._finalize(SubmitReason.MANUAL, completed_at=completed_at, elapsed_s=elapsed_s)
        assert result is not None
        return result

    def abandon(self) -> None:
        if self._phase is Phase.ABANDONED:
            return
        if self._phase is Phase.SUBMITTED:
            raise InvalidStateError("cannot abandon a submitted session")
        self._countdown.stop()
        self._ledger.clear()
        self._ledger.freeze()
        self._phase = Phase.ABANDONED
        logger.info("session abandoned: test=%s", self._test.id)

    def time_remaining_s(self) -> int | None:
        return self._countdown.remaining()

    # -- Answers and flags ---------------------------------------------------

    def set_answer(self, value: Answer, *, question_id: str | None = None) -> None:
        self._require_in_progress("answer")
        self._ledger.set_answer(self._target(question_id), value)

    def unset_answer(self, *, question_id: str | None = None) -> None:
        self._require_in_progress("clear an answer")
        self._ledger.unset_answer(self._target(question_id))

    def toggle_flag(self, *, question_id: str | None = None) -> bool:
        self._require_in_progress("flag")
        return self._ledger.toggle_flag(self._target(question_id))

    def is_answered(self, question_id: str) -> bool:
        return self._ledger.is_answered(question_id)

    def is_flagged(self, question_id: str) -> bool:
        return self._ledger.is_flagged(question_id)

    def answered_count(self) -> int:
        return self._ledger.answered_count()

    def answers(self) -> dict[str, Answer]:
        return self._ledger.answers()

    def flagged(self) -> frozenset[str]:
        return self._ledger.flagged()

    # -- Navigation ------------------------------------------------------------

    @property
    def current_index(self) -> int:
        if self._linear is not None:
            return self._linear.index
        assert self._adaptive is not None
        step = self._adaptive.current
        if step is None:
            return len(self._test.questions)
        return self._test.index_of(step.question_id)

    def current_question(self) -> Question | None:
        if self._linear is not None:
            if not self._test.questions:
                return None
            return self._test.questions[self._linear.index]
        assert self._adaptive is not None
        step = self._adaptive.current
        return None if step is None else self._test.question(step.question_id)

    def next(self) -> int:
        return self._linear_cursor("move to the next question").next()

    def previous(self) -> int:
        return self._linear_cursor("move to the previous question").previous()

    def go_to(self, index: int) -> int:
        return self._linear_cursor("jump to a question").go_to(index)

    def advance(self, outcome: Outcome | object = _DERIVE) -> Directive:
        """Adaptive tests: finish the current question and pick the next step.

        Without an explicit outcome, scoreable questions are judged against
        their answer key (unanswered counts as wrong) and subjective questions
        continue without a judgment.
        """

        self._require_in_progress("advance")
        if self._adaptive is None:
            raise InvalidStateError("advance() is only available on adaptive tests")

        if outcome is _DERIVE:
            outcome = self._derived_outcome()
        directive = self._adaptive.advance(outcome)  # type: ignore[arg-type]
        logger.debug("adaptive advance: test=%s directive=%s", self._test.id, directive.value)

        if self._adaptive.exhausted:
            self._finalize(SubmitReason.SEQUENCE_EXHAUSTED)
        return directive

    def snapshot(self) -> SessionSnapshot:
        q = None if self._phase is not Phase.IN_PROGRESS else self.current_question()
        remedial = False
        if self._adaptive is not None and self._adaptive.current is not None:
            remedial = self._adaptive.current.remedial
        return SessionSnapshot(
            title=self._test.title or self._test.id,
            phase=self._phase,
            question_index=self.current_index,
            question_count=len(self._test.questions),
            question=q,
            selected=None if q is None else self._ledger.answer_for(q.id),
            flagged=False if q is None else self._ledger.is_flagged(q.id),
            answered_count=self._ledger.answered_count(),
            flagged_count=self._ledger.flagged_count(),
            time_remaining_s=self._countdown.remaining(),
            is_adaptive=self.is_adaptive,
            remedial=remedial,
        )

    # -- Internals -------------------------------------------------------------

    def _finalize(
        self,
        reason: SubmitReason,
        *,
        completed_at: str | None = None,
        elapsed_s: float | None = None,
    ) -> TestResult | None:
        # Check-and-set: whoever flips in_progress -> submitted scores; others no-op.
        if self._phase is not Phase.IN_PROGRESS:
            return None
        self._phase = Phase.SUBMITTED
        self._submit_reason = reason
        self._countdown.stop()
        self._ledger.freeze()

        if elapsed_s is None and self._clock is not None and self._started_mono_s is not None:
            elapsed_s = max(0.0, self._clock.now() - self._started_mono_s)

        answers = self._ledger.answers()
        ignored = unknown_answer_ids(self._test, answers)
        if ignored:
            logger.debug("ignoring answers for unknown questions: %s", ", ".join(ignored))

        self._result = score_attempt(
            self._test,
            answers,
            remaining_s=self._countdown.remaining(),
            elapsed_s=elapsed_s,
            completed_at=completed_at if completed_at is not None else self._stamp(),
            flagged=self._ledger.flagged(),
        )
        logger.info(
            "session submitted: test=%s reason=%s score=%d%% correct=%d wrong=%d unattempted=%d",
            self._test.id,
            reason.value,
            self._result.score_percent,
            self._result.correct_count,
            self._result.wrong_count,
            self._result.unattempted_count,
        )
        if self._on_submitted is not None:
            self._on_submitted(self._result)
        return self._result

    def _derived_outcome(self) -> Outcome:
        q = self.current_question()
        if q is None or not q.is_scoreable:
            return None
        value = self._ledger.answer_for(q.id)
        if value is None:
            return False
        return answer_matches(q, value)

    def _target(self, question_id: str | None) -> str:
        if question_id is not None:
            return question_id
        q = self.current_question()
        if q is None:
            raise InvalidStateError("no current question")
        return q.id

    def _linear_cursor(self, action: str) -> LinearCursor:
        self._require_in_progress(action)
        if self._linear is None:
            raise InvalidStateError("adaptive tests move with advance()")
        return self._linear

    def _require_in_progress(self, action: str) -> None:
        if self._phase is not Phase.IN_PROGRESS:
            raise InvalidStateError(f"cannot {action}: session is {self._phase.value}")

    def _stamp(self) -> str | None:
        return None if self._wall_clock is None else self._wall_clock()


def build_exam_session(
    *,
    test: Test,
    clock: Clock | None = None,
    wall_clock: Callable[[], str] | None = None,
    policy: AdaptivePolicy | None = None,
    on_submitted: Callable[[TestResult], None] | None = None,
) -> ExamSession:
    """Factory for a fresh, not-yet-started session. Retakes get a new instance."""

    return ExamSession(
        test=test,
        clock=clock,
        wall_clock=wall_clock,
        policy=policy,
        on_submitted=on_submitted,
    )
