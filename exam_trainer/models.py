"""Test definitions: questions, answer keys and load-time validation.

A ``Test`` is immutable once loaded. Two answer-key styles coexist:

* competitive-exam questions carry ``correct_index`` (position in ``options``);
* course questions carry ``correct_answer`` (an exact, case-sensitive string:
  ``"True"``/``"False"`` or one of the MCQ option strings).

Subjective questions carry neither and are never scored automatically.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import MalformedTestError

TRUE_FALSE_OPTIONS = ("True", "False")


class QuestionKind(str, Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true_false"
    SUBJECTIVE = "subjective"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


Answer = int | str


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    prompt: str
    kind: QuestionKind = QuestionKind.MCQ
    options: tuple[str, ...] = ()
    correct_index: int | None = None
    correct_answer: str | None = None
    topic: str | None = None
    explanation: str | None = None
    difficulty: Difficulty | None = None

    @property
    def is_scoreable(self) -> bool:
        return self.kind is not QuestionKind.SUBJECTIVE

    @property
    def answer_key(self) -> Answer | None:
        if self.correct_index is not None:
            return self.correct_index
        return self.correct_answer


@dataclass(frozen=True, slots=True)
class TestSummary:
    id: str
    title: str
    num_questions: int
    duration_minutes: int | None = None
    difficulty: Difficulty | None = None
    exam_id: str | None = None
    category_id: str | None = None

    __test__ = False


@dataclass(frozen=True, slots=True)
class Test:
    id: str
    questions: tuple[Question, ...]
    title: str = ""
    duration_s: int | None = None
    is_adaptive: bool = False
    exam_id: str | None = None
    category_id: str | None = None
    difficulty: Difficulty | None = None

    # Not a pytest test class despite the name.
    __test__ = False

    @property
    def scoreable_questions(self) -> tuple[Question, ...]:
        return tuple(q for q in self.questions if q.is_scoreable)

    @property
    def duration_minutes(self) -> int | None:
        if self.duration_s is None:
            return None
        return self.duration_s // 60

    def question(self, question_id: str) -> Question | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def index_of(self, question_id: str) -> int:
        for i, q in enumerate(self.questions):
            if q.id == question_id:
                return i
        raise KeyError(question_id)

    def summary(self) -> TestSummary:
        return TestSummary(
            id=self.id,
            title=self.title or self.id,
            num_questions=len(self.questions),
            duration_minutes=self.duration_minutes,
            difficulty=self.difficulty,
            exam_id=self.exam_id,
            category_id=self.category_id,
        )


def validate_test(test: Test) -> Test:
    """Check the shape of a test definition. Returns the test unchanged."""

    if not str(test.id).strip():
        raise MalformedTestError("test id must not be blank")
    if test.duration_s is not None and test.duration_s <= 0:
        raise MalformedTestError(f"test {test.id!r}: duration must be > 0")

    seen: set[str] = set()
    for q in test.questions:
        if not str(q.id).strip():
            raise MalformedTestError(f"test {test.id!r}: question id must not be blank")
        if q.id in seen:
            raise MalformedTestError(f"test {test.id!r}: duplicate question id {q.id!r}")
        seen.add(q.id)
        _validate_question(test.id, q)
    return test


def _validate_question(test_id: str, q: Question) -> None:
    where = f"test {test_id!r}, question {q.id!r}"
    has_index = q.correct_index is not None
    has_answer = q.correct_answer is not None

    if q.kind is QuestionKind.SUBJECTIVE:
        if has_index or has_answer:
            raise MalformedTestError(f"{where}: subjective questions have no answer key")
        return

    if has_index == has_answer:
        raise MalformedTestError(f"{where}: expected exactly one correct-answer reference")

    if q.kind is QuestionKind.TRUE_FALSE:
        if has_index:
            if q.correct_index not in (0, 1):
                raise MalformedTestError(f"{where}: true/false index must be 0 or 1")
        elif q.correct_answer not in TRUE_FALSE_OPTIONS:
            raise MalformedTestError(f"{where}: true/false answer must be 'True' or 'False'")
        return

    if len(q.options) < 2:
        raise MalformedTestError(f"{where}: multiple-choice questions need at least two options")
    if has_index:
        # bool is an int subclass; True/False are not option positions.
        if isinstance(q.correct_index, bool) or not (0 <= q.correct_index < len(q.options)):
            raise MalformedTestError(f"{where}: correct index {q.correct_index!r} outside options")
    elif q.correct_answer not in q.options:
        raise MalformedTestError(f"{where}: correct answer {q.correct_answer!r} is not an option")


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _parse_kind(raw: object) -> QuestionKind:
    if raw is None:
        return QuestionKind.MCQ
    text = str(raw).strip().lower().replace("-", "_")
    try:
        return QuestionKind(text)
    except ValueError as exc:
        raise MalformedTestError(f"unknown question type {raw!r}") from exc


def _parse_difficulty(raw: object) -> Difficulty | None:
    if raw is None or raw == "":
        return None
    try:
        return Difficulty(str(raw).strip().lower())
    except ValueError as exc:
        raise MalformedTestError(f"unknown difficulty {raw!r}") from exc


def question_from_dict(data: Mapping[str, Any]) -> Question:
    if not isinstance(data, Mapping):
        raise MalformedTestError(f"question must be a mapping, got {type(data).__name__}")

    qid = _pick(data, "id")
    prompt = _pick(data, "prompt", "text", default="")
    if qid is None:
        raise MalformedTestError("question is missing 'id'")

    options = _pick(data, "options", default=()) or ()
    if not isinstance(options, (list, tuple)):
        raise MalformedTestError(f"question {qid!r}: options must be a list")

    correct_index = _pick(data, "correct_index", "correctOptionIndex")
    if correct_index is not None and (isinstance(correct_index, bool) or not isinstance(correct_index, int)):
        raise MalformedTestError(f"question {qid!r}: correct index must be an integer")
    correct_answer = _pick(data, "correct_answer", "correctAnswer")
    # Course data stores "no key" as an empty string.
    if correct_answer == "":
        correct_answer = None

    kind = _parse_kind(_pick(data, "kind", "type"))
    topic = _pick(data, "topic", "section")

    return Question(
        id=str(qid),
        prompt=str(prompt),
        kind=kind,
        options=tuple(str(o) for o in options),
        correct_index=correct_index,
        correct_answer=None if correct_answer is None else str(correct_answer),
        topic=None if topic in (None, "") else str(topic),
        explanation=_pick(data, "explanation"),
        difficulty=_parse_difficulty(_pick(data, "difficulty")),
    )


def test_from_dict(data: Mapping[str, Any]) -> Test:
    """Decode a JSON-shaped test definition and validate it.

    Accepts snake_case or camelCase keys. Durations may be given in seconds
    (``duration_s``/``durationSeconds``) or minutes
    (``duration_minutes``/``durationMinutes``/``duration``).
    """

    if not isinstance(data, Mapping):
        raise MalformedTestError(f"test must be a mapping, got {type(data).__name__}")

    tid = _pick(data, "id")
    if tid is None:
        raise MalformedTestError("test is missing 'id'")

    raw_questions = _pick(data, "questions", default=None)
    if not isinstance(raw_questions, (list, tuple)):
        raise MalformedTestError(f"test {tid!r}: 'questions' must be a list")

    duration_s = _pick(data, "duration_s", "durationSeconds")
    if duration_s is None:
        minutes = _pick(data, "duration_minutes", "durationMinutes", "duration")
        if minutes is not None and (not isinstance(minutes, int) or isinstance(minutes, bool)):
            raise MalformedTestError(f"test {tid!r}: duration must be an integer number of minutes")
        duration_s = None if minutes is None else minutes * 60
    elif not isinstance(duration_s, int) or isinstance(duration_s, bool):
        raise MalformedTestError(f"test {tid!r}: duration must be an integer number of seconds")

    test = Test(
        id=str(tid),
        title=str(_pick(data, "title", default="")),
        questions=tuple(question_from_dict(q) for q in raw_questions),
        duration_s=duration_s,
        is_adaptive=bool(_pick(data, "is_adaptive", "isAdaptive", default=False)),
        exam_id=_pick(data, "exam_id", "examId"),
        category_id=_pick(data, "category_id", "categoryId"),
        difficulty=_parse_difficulty(_pick(data, "difficulty")),
    )
    return validate_test(test)


# Keep pytest from collecting the decoder as a test function.
test_from_dict.__test__ = False  # type: ignore[attr-defined]
