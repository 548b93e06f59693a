from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Put the repository root (parent of this package) on ``sys.path``.

    Needed when the module is executed as a plain script
    (``python exam_trainer/__main__.py``) rather than with ``-m``.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # python -m exam_trainer
    from .app import run  # type: ignore[attr-defined]
    from .catalog import JsonCatalog, build_sample_test, load_test_file  # type: ignore[attr-defined]
    from .config import TrainerConfig  # type: ignore[attr-defined]
    from .errors import MalformedTestError  # type: ignore[attr-defined]
    from .persistence import SqliteResultRepository  # type: ignore[attr-defined]
except ImportError:
    # Executed as a script (IDE "Run Python File", absolute path, etc.)
    _ensure_repo_root_on_path()
    from exam_trainer.app import run  # type: ignore[attr-defined]
    from exam_trainer.catalog import JsonCatalog, build_sample_test, load_test_file  # type: ignore[attr-defined]
    from exam_trainer.config import TrainerConfig  # type: ignore[attr-defined]
    from exam_trainer.errors import MalformedTestError  # type: ignore[attr-defined]
    from exam_trainer.persistence import SqliteResultRepository  # type: ignore[attr-defined]

logger = logging.getLogger("exam_trainer")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exam-trainer", description="Take a timed practice test.")
    parser.add_argument("--test", type=Path, help="path to a JSON test definition")
    parser.add_argument("--tests-dir", type=Path, help="directory of JSON test definitions")
    parser.add_argument("--test-id", help="test to load from --tests-dir (default: the first one)")
    parser.add_argument("--adaptive", action="store_true", help="use the adaptive built-in sample test")
    parser.add_argument("--db", type=Path, help="SQLite file for result history")
    parser.add_argument("--user", help="user id the results are recorded under")
    parser.add_argument("--log-level", help="logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--max-frames", type=int, help="stop after this many frames (headless runs)")
    return parser


def _select_test(args: argparse.Namespace, config: TrainerConfig):
    if args.test is not None:
        return load_test_file(args.test)

    tests_dir = args.tests_dir or config.tests_dir
    if tests_dir is None:
        return build_sample_test(adaptive=args.adaptive)

    catalog = JsonCatalog(tests_dir)
    if args.test_id:
        return catalog.load(args.test_id)
    summaries = catalog.summaries()
    if not summaries:
        raise MalformedTestError(f"{tests_dir}: no test definitions found")
    return catalog.load(summaries[0].id)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running the trainer from the command line."""
    args = build_parser().parse_args(argv)
    config = TrainerConfig.from_env()

    level_name = (args.log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        test = _select_test(args, config)
    except KeyError as exc:
        logger.error("unknown test id: %s", exc.args[0])
        return 2
    except (MalformedTestError, OSError) as exc:
        logger.error("could not load test: %s", exc)
        return 2

    repository = SqliteResultRepository(args.db or config.db_path)
    return run(
        test=test,
        repository=repository,
        user_id=args.user or config.user_id,
        max_frames=args.max_frames,
    )


if __name__ == "__main__":
    raise SystemExit(main())
