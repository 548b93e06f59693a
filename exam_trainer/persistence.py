from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from pathlib import Path
from typing import Protocol

from .clock import utc_now_iso
from .models import Answer
from .results import TestResult

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class ResultRepository(Protocol):
    """Append-only, per-user history of submitted results."""

    def persist(self, user_id: str, result: TestResult) -> None:
        ...

    def load_history(self, user_id: str) -> list[TestResult]:
        """Return the user's results, oldest first."""
        ...


class InMemoryResultRepository:
    def __init__(self) -> None:
        self._history: dict[str, list[TestResult]] = defaultdict(list)

    def persist(self, user_id: str, result: TestResult) -> None:
        self._history[user_id].append(result)

    def load_history(self, user_id: str) -> list[TestResult]:
        return list(self._history.get(user_id, ()))


def open_db(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    _migrate(conn)
    return conn


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS attempt (
                id INTEGER PRIMARY KEY,
                user_id TEXT NOT NULL,
                test_id TEXT NOT NULL,
                exam_id TEXT,
                category_id TEXT,
                score_percent INTEGER NOT NULL,
                correct_count INTEGER NOT NULL,
                wrong_count INTEGER NOT NULL,
                unattempted_count INTEGER NOT NULL,
                time_taken_minutes INTEGER NOT NULL,
                completed_at_utc TEXT,
                recorded_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_attempt_user ON attempt(user_id, id);")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS section_accuracy (
                attempt_id INTEGER NOT NULL REFERENCES attempt(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                topic TEXT NOT NULL,
                accuracy INTEGER NOT NULL,
                PRIMARY KEY (attempt_id, topic)
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS weakness (
                attempt_id INTEGER NOT NULL REFERENCES attempt(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                topic TEXT NOT NULL,
                PRIMARY KEY (attempt_id, seq)
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS answer (
                attempt_id INTEGER NOT NULL REFERENCES attempt(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                question_id TEXT NOT NULL,
                value_kind TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (attempt_id, question_id)
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS flag (
                attempt_id INTEGER NOT NULL REFERENCES attempt(id) ON DELETE CASCADE,
                question_id TEXT NOT NULL,
                PRIMARY KEY (attempt_id, question_id)
            );
            """
        )
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


class SqliteResultRepository:
    """SQLite-backed history: attempt -> section_accuracy + weakness + answer + flag.

    Only inserts and selects are issued; results are never updated or deleted.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def persist(self, user_id: str, result: TestResult) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = open_db(self._path)
        try:
            attempt_id = _insert_attempt(conn=conn, user_id=user_id, result=result)
        except sqlite3.Error:
            logger.exception("failed to persist result for test %s", result.test_id)
            raise
        finally:
            conn.close()
        logger.info("persisted attempt %d: user=%s test=%s", attempt_id, user_id, result.test_id)

    def load_history(self, user_id: str) -> list[TestResult]:
        if not self._path.exists():
            return []
        conn = open_db(self._path)
        try:
            return _select_history(conn=conn, user_id=user_id)
        finally:
            conn.close()


def _encode_answer(value: Answer) -> tuple[str, str]:
    if isinstance(value, bool):
        return "text", str(value)
    if isinstance(value, int):
        return "index", str(value)
    return "text", str(value)


def _decode_answer(kind: str, value: str) -> Answer:
    if kind == "index":
        return int(value)
    return value


def _insert_attempt(*, conn: sqlite3.Connection, user_id: str, result: TestResult) -> int:
    with conn:
        cur = conn.execute(
            """
            INSERT INTO attempt(
                user_id, test_id, exam_id, category_id,
                score_percent, correct_count, wrong_count, unattempted_count,
                time_taken_minutes, completed_at_utc, recorded_at_utc
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(user_id),
                str(result.test_id),
                result.exam_id,
                result.category_id,
                int(result.score_percent),
                int(result.correct_count),
                int(result.wrong_count),
                int(result.unattempted_count),
                int(result.time_taken_minutes),
                result.completed_at,
                utc_now_iso(),
            ),
        )
        attempt_id = int(cur.lastrowid)

        for seq, (topic, accuracy) in enumerate(result.section_wise_accuracy.items()):
            conn.execute(
                "INSERT INTO section_accuracy(attempt_id, seq, topic, accuracy) VALUES (?, ?, ?, ?)",
                (attempt_id, seq, str(topic), int(accuracy)),
            )
        for seq, topic in enumerate(result.topic_weaknesses):
            conn.execute(
                "INSERT INTO weakness(attempt_id, seq, topic) VALUES (?, ?, ?)",
                (attempt_id, seq, str(topic)),
            )
        for seq, (question_id, value) in enumerate(result.answers.items()):
            kind, text = _encode_answer(value)
            conn.execute(
                """
                INSERT INTO answer(attempt_id, seq, question_id, value_kind, value)
                VALUES (?, ?, ?, ?, ?)
                """,
                (attempt_id, seq, str(question_id), kind, text),
            )
        for question_id in result.flagged:
            conn.execute(
                "INSERT INTO flag(attempt_id, question_id) VALUES (?, ?)",
                (attempt_id, str(question_id)),
            )

    return attempt_id


def _select_history(*, conn: sqlite3.Connection, user_id: str) -> list[TestResult]:
    rows = conn.execute(
        """
        SELECT id, test_id, exam_id, category_id, score_percent, correct_count,
               wrong_count, unattempted_count, time_taken_minutes, completed_at_utc
        FROM attempt
        WHERE user_id = ?
        ORDER BY id
        """,
        (str(user_id),),
    ).fetchall()

    history: list[TestResult] = []
    for row in rows:
        attempt_id = int(row[0])
        accuracy = {
            str(topic): int(value)
            for topic, value in conn.execute(
                "SELECT topic, accuracy FROM section_accuracy WHERE attempt_id = ? ORDER BY seq",
                (attempt_id,),
            )
        }
        weaknesses = tuple(
            str(topic)
            for (topic,) in conn.execute(
                "SELECT topic FROM weakness WHERE attempt_id = ? ORDER BY seq",
                (attempt_id,),
            )
        )
        answers = {
            str(qid): _decode_answer(kind, value)
            for qid, kind, value in conn.execute(
                "SELECT question_id, value_kind, value FROM answer WHERE attempt_id = ? ORDER BY seq",
                (attempt_id,),
            )
        }
        flagged = tuple(
            str(qid)
            for (qid,) in conn.execute(
                "SELECT question_id FROM flag WHERE attempt_id = ? ORDER BY question_id",
                (attempt_id,),
            )
        )
        history.append(
            TestResult(
                test_id=str(row[1]),
                exam_id=row[2],
                category_id=row[3],
                score_percent=int(row[4]),
                correct_count=int(row[5]),
                wrong_count=int(row[6]),
                unattempted_count=int(row[7]),
                time_taken_minutes=int(row[8]),
                section_wise_accuracy=accuracy,
                topic_weaknesses=weaknesses,
                answers=answers,
                flagged=flagged,
                completed_at=row[9],
            )
        )
    return history
