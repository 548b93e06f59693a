from __future__ import annotations

from pathlib import Path

from exam_trainer.config import (
    DB_PATH_ENV,
    LOG_LEVEL_ENV,
    TESTS_DIR_ENV,
    USER_ID_ENV,
    TrainerConfig,
    default_db_path,
)


def test_defaults_when_environment_is_empty() -> None:
    cfg = TrainerConfig.from_env({})
    assert cfg.db_path == default_db_path()
    assert cfg.user_id == "local"
    assert cfg.log_level == "INFO"
    assert cfg.tests_dir is None


def test_environment_overrides(tmp_path: Path) -> None:
    cfg = TrainerConfig.from_env(
        {
            DB_PATH_ENV: str(tmp_path / "r.sqlite3"),
            USER_ID_ENV: " student-7 ",
            LOG_LEVEL_ENV: "debug",
            TESTS_DIR_ENV: str(tmp_path),
        }
    )
    assert cfg.db_path == tmp_path / "r.sqlite3"
    assert cfg.user_id == "student-7"
    assert cfg.log_level == "DEBUG"
    assert cfg.tests_dir == tmp_path


def test_blank_values_fall_back_to_defaults() -> None:
    cfg = TrainerConfig.from_env({USER_ID_ENV: "   ", DB_PATH_ENV: ""})
    assert cfg.user_id == "local"
    assert cfg.db_path == default_db_path()
