from __future__ import annotations

import pytest

from exam_trainer.errors import InvalidStateError
from exam_trainer.ledger import AnswerLedger


def test_zero_and_empty_string_are_real_answers() -> None:
    ledger = AnswerLedger()
    ledger.set_answer("q1", 0)
    ledger.set_answer("q2", "")
    assert ledger.is_answered("q1") is True
    assert ledger.is_answered("q2") is True
    assert ledger.answer_for("q1") == 0
    assert ledger.answered_count() == 2


def test_set_overwrites_and_unset_removes() -> None:
    ledger = AnswerLedger()
    ledger.set_answer("q1", 2)
    ledger.set_answer("q1", 3)
    assert ledger.answers() == {"q1": 3}
    ledger.unset_answer("q1")
    ledger.unset_answer("missing")
    assert ledger.answers() == {}
    assert ledger.answered_count() == 0


def test_flags_are_independent_of_answers() -> None:
    ledger = AnswerLedger()
    assert ledger.toggle_flag("q1") is True
    assert ledger.is_flagged("q1") is True
    assert ledger.is_answered("q1") is False

    ledger.set_answer("q1", 1)
    ledger.unset_answer("q1")
    assert ledger.is_flagged("q1") is True

    assert ledger.toggle_flag("q1") is False
    assert ledger.flagged() == frozenset()


def test_answers_returns_a_copy() -> None:
    ledger = AnswerLedger()
    ledger.set_answer("q1", 1)
    snapshot = ledger.answers()
    snapshot["q2"] = 5
    assert ledger.answers() == {"q1": 1}


def test_frozen_ledger_rejects_every_mutation() -> None:
    ledger = AnswerLedger()
    ledger.set_answer("q1", 1)
    ledger.toggle_flag("q2")
    ledger.freeze()
    assert ledger.frozen is True

    with pytest.raises(InvalidStateError):
        ledger.set_answer("q1", 2)
    with pytest.raises(InvalidStateError):
        ledger.unset_answer("q1")
    with pytest.raises(InvalidStateError):
        ledger.toggle_flag("q2")
    with pytest.raises(InvalidStateError):
        ledger.clear()

    assert ledger.answers() == {"q1": 1}
    assert ledger.flagged() == frozenset({"q2"})
