from __future__ import annotations

from .errors import InvalidStateError
from .models import Answer


class AnswerLedger:
    """Question id -> given answer, plus an independent "flagged for review" set.

    Unanswered questions are absent from the mapping, so ``0`` and ``""`` are
    real answers. Once frozen, every mutation raises ``InvalidStateError``.
    """

    def __init__(self) -> None:
        self._answers: dict[str, Answer] = {}
        self._flagged: set[str] = set()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def set_answer(self, question_id: str, value: Answer) -> None:
        self._check_mutable()
        self._answers[question_id] = value

    def unset_answer(self, question_id: str) -> None:
        self._check_mutable()
        self._answers.pop(question_id, None)

    def toggle_flag(self, question_id: str) -> bool:
        """Flip the review flag. Returns the new flag state."""

        self._check_mutable()
        if question_id in self._flagged:
            self._flagged.discard(question_id)
            return False
        self._flagged.add(question_id)
        return True

    def clear(self) -> None:
        self._check_mutable()
        self._answers.clear()
        self._flagged.clear()

    def answer_for(self, question_id: str) -> Answer | None:
        return self._answers.get(question_id)

    def is_answered(self, question_id: str) -> bool:
        return question_id in self._answers

    def is_flagged(self, question_id: str) -> bool:
        return question_id in self._flagged

    def answered_count(self) -> int:
        return len(self._answers)

    def flagged_count(self) -> int:
        return len(self._flagged)

    def answers(self) -> dict[str, Answer]:
        return dict(self._answers)

    def flagged(self) -> frozenset[str]:
        return frozenset(self._flagged)

    def _check_mutable(self) -> None:
        if self._frozen:
            raise InvalidStateError("answer ledger is frozen after submission")
