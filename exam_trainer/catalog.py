from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .errors import MalformedTestError
from .models import Difficulty, Question, QuestionKind, Test, TestSummary, test_from_dict, validate_test

logger = logging.getLogger(__name__)


class TestCatalog(Protocol):
    """Read-only provider of test definitions."""

    def load(self, test_id: str) -> Test:
        """Return the test or raise ``KeyError``."""
        ...

    def summaries(self) -> list[TestSummary]:
        ...


class InMemoryCatalog:
    def __init__(self, tests: Iterable[Test] = ()) -> None:
        self._tests: dict[str, Test] = {}
        for t in tests:
            self._tests[t.id] = validate_test(t)

    def load(self, test_id: str) -> Test:
        return self._tests[test_id]

    def summaries(self) -> list[TestSummary]:
        return [t.summary() for t in self._tests.values()]


class JsonCatalog:
    """Test definitions stored as one ``*.json`` file per test in a directory.

    Files are read lazily on first use; a malformed file raises
    ``MalformedTestError`` naming the file.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)
        self._tests: dict[str, Test] | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    def load(self, test_id: str) -> Test:
        return self._index()[test_id]

    def summaries(self) -> list[TestSummary]:
        return [t.summary() for t in self._index().values()]

    def _index(self) -> dict[str, Test]:
        if self._tests is None:
            tests: dict[str, Test] = {}
            for path in sorted(self._directory.glob("*.json")):
                test = load_test_file(path)
                if test.id in tests:
                    raise MalformedTestError(f"{path}: duplicate test id {test.id!r}")
                tests[test.id] = test
            logger.info("loaded %d test definitions from %s", len(tests), self._directory)
            self._tests = tests
        return self._tests


def load_test_file(path: Path) -> Test:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedTestError(f"{path}: invalid JSON ({exc.msg})") from exc
    try:
        return test_from_dict(payload)
    except MalformedTestError as exc:
        raise MalformedTestError(f"{path}: {exc}") from exc


def build_sample_test(*, adaptive: bool = False) -> Test:
    """Small built-in test used by the app when no definition is given."""

    questions = (
        Question(
            id="q1",
            prompt="A train covers 120 km in 2 hours. What is its average speed?",
            options=("40 km/h", "60 km/h", "80 km/h", "120 km/h"),
            correct_index=1,
            topic="Quantitative Aptitude",
            difficulty=Difficulty.EASY,
        ),
        Question(
            id="q2",
            prompt="Which gas do plants absorb during photosynthesis?",
            options=("Oxygen", "Nitrogen", "Carbon dioxide", "Hydrogen"),
            correct_index=2,
            topic="General Science",
            difficulty=Difficulty.EASY,
        ),
        Question(
            id="q3",
            prompt="What is 15% of 240?",
            options=("24", "30", "36", "42"),
            correct_index=2,
            topic="Quantitative Aptitude",
            difficulty=Difficulty.MEDIUM,
        ),
        Question(
            id="q4",
            prompt="Sound travels faster in water than in air.",
            kind=QuestionKind.TRUE_FALSE,
            correct_answer="True",
            topic="General Science",
            difficulty=Difficulty.MEDIUM,
        ),
        Question(
            id="q5",
            prompt="Choose the word closest in meaning to 'candid'.",
            options=("Frank", "Secretive", "Hostile", "Careless"),
            correct_index=0,
            topic="Verbal Ability",
            difficulty=Difficulty.MEDIUM,
        ),
    )
    return validate_test(
        Test(
            id="sample-adaptive" if adaptive else "sample",
            title="Adaptive Practice" if adaptive else "General Aptitude Practice",
            questions=questions,
            duration_s=10 * 60,
            is_adaptive=adaptive,
            exam_id="sample-exam",
            category_id="aptitude",
            difficulty=Difficulty.MEDIUM,
        )
    )
