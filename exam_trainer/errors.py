from __future__ import annotations


class ExamTrainerError(Exception):
    """Base class for errors raised by the exam core."""


class InvalidStateError(ExamTrainerError):
    """A session (or its ledger/cursor) was mutated outside ``in_progress``."""


class IndexOutOfRangeError(ExamTrainerError, IndexError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"question index {index} out of range for {size} questions")
        self.index = index
        self.size = size


class MalformedTestError(ExamTrainerError, ValueError):
    """A test definition failed shape validation at load time."""
