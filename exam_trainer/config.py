from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DB_PATH_ENV = "EXAM_TRAINER_DB_PATH"
USER_ID_ENV = "EXAM_TRAINER_USER_ID"
LOG_LEVEL_ENV = "EXAM_TRAINER_LOG_LEVEL"
TESTS_DIR_ENV = "EXAM_TRAINER_TESTS_DIR"

DEFAULT_USER_ID = "local"
DEFAULT_LOG_LEVEL = "INFO"


def default_db_path() -> Path:
    return Path.home() / ".exam_trainer_results.sqlite3"


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    db_path: Path
    user_id: str = DEFAULT_USER_ID
    log_level: str = DEFAULT_LOG_LEVEL
    tests_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TrainerConfig":
        env = os.environ if environ is None else environ

        explicit_db = env.get(DB_PATH_ENV, "").strip()
        db_path = Path(explicit_db).expanduser() if explicit_db else default_db_path()

        user_id = env.get(USER_ID_ENV, "").strip() or DEFAULT_USER_ID
        log_level = env.get(LOG_LEVEL_ENV, "").strip().upper() or DEFAULT_LOG_LEVEL

        raw_tests_dir = env.get(TESTS_DIR_ENV, "").strip()
        tests_dir = Path(raw_tests_dir).expanduser() if raw_tests_dir else None

        return cls(db_path=db_path, user_id=user_id, log_level=log_level, tests_dir=tests_dir)
