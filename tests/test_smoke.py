"""Smoke tests for the pygame host.

These run the main loop headlessly with the SDL dummy video driver. Key
presses are posted through ``event_injector`` so a whole attempt (start,
answer, submit) goes through the real event handling.
"""

from __future__ import annotations

import os

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")


def _key(key: int, unicode: str = ""):
    import pygame

    return pygame.event.Event(pygame.KEYDOWN, {"key": key, "unicode": unicode, "mod": 0})


def test_app_runs_headless() -> None:
    """Ensure the application can start and run a few frames headlessly."""
    from exam_trainer.app import run

    exit_code = run(max_frames=3)
    assert exit_code == 0


def test_scripted_attempt_is_persisted_once() -> None:
    import pygame

    from exam_trainer.app import run
    from exam_trainer.persistence import InMemoryResultRepository

    repo = InMemoryResultRepository()
    script = {
        1: _key(pygame.K_RETURN),  # begin
        2: _key(pygame.K_2, "2"),  # q1 -> option 2 (correct)
        3: _key(pygame.K_TAB),  # flag q1
        4: _key(pygame.K_RIGHT),
        5: _key(pygame.K_1, "1"),  # q2 -> option 1 (wrong)
        6: _key(pygame.K_RETURN),  # submit
        7: _key(pygame.K_RETURN),  # leave the results screen
    }

    def inject(frame: int) -> None:
        event = script.get(frame)
        if event is not None:
            pygame.event.post(event)

    exit_code = run(repository=repo, user_id="smoke", max_frames=30, event_injector=inject)
    assert exit_code == 0

    history = repo.load_history("smoke")
    assert len(history) == 1
    r = history[0]
    assert (r.correct_count, r.wrong_count, r.unattempted_count) == (1, 1, 3)
    assert r.answers == {"q1": 1, "q2": 0}
    assert r.flagged == ("q1",)


def test_closing_mid_attempt_discards_it() -> None:
    import pygame

    from exam_trainer.app import run
    from exam_trainer.persistence import InMemoryResultRepository

    repo = InMemoryResultRepository()

    def inject(frame: int) -> None:
        if frame == 1:
            pygame.event.post(_key(pygame.K_RETURN))
        elif frame == 2:
            pygame.event.post(_key(pygame.K_3, "3"))

    assert run(repository=repo, user_id="smoke", max_frames=6, event_injector=inject) == 0
    assert repo.load_history("smoke") == []


def test_cli_main_runs_headless(tmp_path) -> None:
    from exam_trainer.__main__ import main

    exit_code = main(["--db", str(tmp_path / "r.sqlite3"), "--max-frames", "2", "--log-level", "WARNING"])
    assert exit_code == 0


def test_cli_main_reports_unreadable_test(tmp_path) -> None:
    from exam_trainer.__main__ import main

    bad = tmp_path / "bad.json"
    bad.write_text("[]", encoding="utf-8")
    assert main(["--test", str(bad)]) == 2
