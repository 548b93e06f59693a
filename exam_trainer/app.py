"""Pygame host for a single exam session.

The host owns nothing but presentation and the 1 Hz timer: a pygame timer
event calls ``ExamSession.tick()`` once per second, key presses call the
session's answer/flag/navigation methods, and the results screen reads the
``TestResult`` handed to the repository. Timing, scoring and state live in the
core modules.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

import pygame

from .catalog import build_sample_test
from .clock import RealClock, utc_now_iso
from .guidance import tips_for_history, tips_for_result
from .models import TRUE_FALSE_OPTIONS, Answer, Question, QuestionKind, Test
from .persistence import InMemoryResultRepository, ResultRepository
from .results import TestResult
from .session import ExamSession, Phase, build_exam_session

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60
TICK_EVENT = pygame.USEREVENT + 1
TICK_INTERVAL_MS = 1000
LOW_TIME_S = 5 * 60

BG = (10, 10, 14)
TEXT_MAIN = (235, 235, 245)
TEXT_MUTED = (150, 150, 165)
TEXT_WARN = (235, 110, 110)
SELECTED = (120, 190, 255)
FLAGGED = (235, 200, 90)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def replace(self, screen: Screen) -> None:
        if self._screens:
            self._screens.pop()
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def format_clock(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def answer_for_choice(question: Question, choice: int) -> Answer | None:
    """Map a 0-based option choice to the value the answer key compares against."""

    options = question.options or (TRUE_FALSE_OPTIONS if question.kind is QuestionKind.TRUE_FALSE else ())
    if not (0 <= choice < len(options)):
        return None
    if question.correct_index is not None:
        return choice
    return options[choice]


def _wrap(font: pygame.font.Font, text: str, max_width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split(" "):
            candidate = word if current == "" else f"{current} {word}"
            if font.size(candidate)[0] <= max_width or current == "":
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


class ExamScreen:
    """Instructions -> timed questions. Hands off to ``ResultsScreen`` on submit."""

    def __init__(
        self,
        app: App,
        *,
        session: ExamSession,
        on_finished: Callable[[TestResult], Screen],
    ) -> None:
        self._app = app
        self._session = session
        self._on_finished = on_finished
        self._small_font = pygame.font.Font(None, 24)
        self._big_font = pygame.font.Font(None, 44)

    @property
    def session(self) -> ExamSession:
        return self._session

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == TICK_EVENT:
            if self._session.tick():
                self._finish()
            return
        if event.type != pygame.KEYDOWN:
            return

        phase = self._session.phase
        if phase is Phase.NOT_STARTED:
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._session.start()
                # A test with nothing to present may finish on start.
                if self._session.phase is Phase.SUBMITTED:
                    self._finish()
            elif event.key == pygame.K_ESCAPE:
                self._app.quit()
            return
        if phase is not Phase.IN_PROGRESS:
            return

        if event.key == pygame.K_ESCAPE:
            self._session.abandon()
            self._app.quit()
            return
        self._handle_question_key(event)
        if self._session.phase is Phase.SUBMITTED:
            self._finish()

    def _handle_question_key(self, event: pygame.event.Event) -> None:
        q = self._session.current_question()
        if q is None:
            return
        key = event.key

        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            if self._session.is_adaptive:
                self._session.advance()
            else:
                self._session.submit()
            return
        if key == pygame.K_TAB:
            self._session.toggle_flag()
            return
        if key == pygame.K_RIGHT:
            if self._session.is_adaptive:
                self._session.advance()
            else:
                self._session.next()
            return
        if key == pygame.K_LEFT:
            if not self._session.is_adaptive:
                self._session.previous()
            return

        if q.kind is QuestionKind.SUBJECTIVE:
            self._edit_text(q, event)
            return

        if key in (pygame.K_BACKSPACE, pygame.K_DELETE):
            self._session.unset_answer()
            return
        choice: int | None = None
        if q.kind is QuestionKind.TRUE_FALSE and key in (pygame.K_t, pygame.K_f):
            choice = 0 if key == pygame.K_t else 1
        elif event.unicode and event.unicode.isdigit() and event.unicode != "0":
            choice = int(event.unicode) - 1
        if choice is None:
            return
        value = answer_for_choice(q, choice)
        if value is not None:
            self._session.set_answer(value)

    def _edit_text(self, q: Question, event: pygame.event.Event) -> None:
        current = self._session.answers().get(q.id)
        text = current if isinstance(current, str) else ""
        if event.key == pygame.K_BACKSPACE:
            text = text[:-1]
        elif event.unicode and event.unicode.isprintable():
            text += event.unicode
        else:
            return
        if text:
            self._session.set_answer(text)
        else:
            self._session.unset_answer()

    def _finish(self) -> None:
        result = self._session.result
        if result is None:
            return
        self._app.replace(self._on_finished(result))

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BG)
        if self._session.phase is Phase.NOT_STARTED:
            self._render_instructions(surface)
        else:
            self._render_question(surface)

    def _render_instructions(self, surface: pygame.Surface) -> None:
        test = self._session.test
        duration = "Untimed" if test.duration_s is None else f"{test.duration_s // 60} minutes"
        lines = [
            f"{len(test.questions)} questions  |  {duration}",
            "",
            "The timer starts as soon as you begin and cannot be paused.",
            "The test submits automatically when time runs out.",
            "",
            "1-9: choose option   T/F: true/false   Backspace: clear",
            "Left/Right: navigate   Tab: flag for review   Enter: submit",
            "Esc: abandon",
            "",
            "Press Enter to begin.",
        ]
        if test.is_adaptive:
            lines[6] = "Enter or Right: confirm answer and continue   Tab: flag"
        surface.blit(self._big_font.render(test.title or test.id, True, TEXT_MAIN), (40, 40))
        y = 110
        for line in lines:
            surface.blit(self._app.font.render(line, True, TEXT_MAIN), (40, y))
            y += 34

    def _render_question(self, surface: pygame.Surface) -> None:
        snap = self._session.snapshot()
        w, h = surface.get_size()

        header = f"Question {snap.question_index + 1} of {snap.question_count}"
        if snap.remedial:
            header += "  (review)"
        surface.blit(self._app.font.render(header, True, TEXT_MAIN), (40, 30))

        if snap.time_remaining_s is not None:
            color = TEXT_WARN if snap.time_remaining_s < LOW_TIME_S else TEXT_MAIN
            timer = self._big_font.render(format_clock(snap.time_remaining_s), True, color)
            surface.blit(timer, timer.get_rect(topright=(w - 40, 24)))

        q = snap.question
        if q is None:
            return

        y = 90
        for line in _wrap(self._app.font, q.prompt, w - 80):
            surface.blit(self._app.font.render(line, True, TEXT_MAIN), (40, y))
            y += 34
        y += 12

        if q.kind is QuestionKind.SUBJECTIVE:
            typed = snap.selected if isinstance(snap.selected, str) else ""
            for line in _wrap(self._small_font, typed + "_", w - 100):
                surface.blit(self._small_font.render(line, True, SELECTED), (60, y))
                y += 26
        else:
            options: Sequence[str] = q.options or TRUE_FALSE_OPTIONS
            for idx, option in enumerate(options):
                value = answer_for_choice(q, idx)
                chosen = snap.selected is not None and value == snap.selected
                marker = "(*)" if chosen else "( )"
                label = f"{marker} {idx + 1}. {option}"
                surface.blit(self._app.font.render(label, True, SELECTED if chosen else TEXT_MAIN), (60, y))
                y += 36

        if snap.flagged:
            surface.blit(self._small_font.render("Flagged for review", True, FLAGGED), (40, h - 90))
        status = (
            f"Answered {snap.answered_count}  |  Not answered {snap.question_count - snap.answered_count}"
            f"  |  Flagged {snap.flagged_count}"
        )
        surface.blit(self._small_font.render(status, True, TEXT_MUTED), (40, h - 60))


class ResultsScreen:
    def __init__(self, app: App, *, result: TestResult, tips: Sequence[str]) -> None:
        self._app = app
        self._result = result
        self._tips = list(tips)
        self._small_font = pygame.font.Font(None, 24)

    @property
    def result(self) -> TestResult:
        return self._result

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_RETURN, pygame.K_KP_ENTER):
            self._app.quit()

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BG)
        r = self._result
        lines = [
            "Results",
            "",
            f"Score: {r.score_percent}%",
            f"Correct: {r.correct_count}   Wrong: {r.wrong_count}   Unattempted: {r.unattempted_count}",
            f"Time taken: {r.time_taken_minutes} min",
        ]
        if r.section_wise_accuracy:
            sections = ", ".join(f"{t} {a}%" for t, a in r.section_wise_accuracy.items())
            lines.append(f"By topic: {sections}")
        if r.topic_weaknesses:
            lines.append(f"Weak topics: {', '.join(r.topic_weaknesses)}")
        y = 40
        for line in lines:
            surface.blit(self._app.font.render(line, True, TEXT_MAIN), (40, y))
            y += 34
        y += 10
        for tip in self._tips:
            for line in _wrap(self._small_font, f"- {tip}", surface.get_width() - 80):
                surface.blit(self._small_font.render(line, True, TEXT_MUTED), (40, y))
                y += 24
        hint = self._small_font.render("Press Enter or Esc to close", True, TEXT_MUTED)
        surface.blit(hint, (40, surface.get_height() - 40))


def run(
    *,
    test: Test | None = None,
    repository: ResultRepository | None = None,
    user_id: str = "local",
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
) -> int:
    exam = test or build_sample_test()
    store: ResultRepository = repository if repository is not None else InMemoryResultRepository()

    pygame.init()
    pygame.display.set_caption(exam.title or "Exam Trainer")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    font = pygame.font.Font(None, 32)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)

    def persist(result: TestResult) -> None:
        store.persist(user_id, result)

    def show_results(result: TestResult) -> Screen:
        history = store.load_history(user_id)
        tips = tips_for_result(result) + tips_for_history(history)
        return ResultsScreen(app, result=result, tips=tips)

    session = build_exam_session(
        test=exam,
        clock=RealClock(),
        wall_clock=utc_now_iso,
        on_submitted=persist,
    )
    logger.info("exam host ready: test=%s user=%s", exam.id, user_id)
    app.push(ExamScreen(app, session=session, on_finished=show_results))
    pygame.time.set_timer(TICK_EVENT, TICK_INTERVAL_MS)

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.time.set_timer(TICK_EVENT, 0)
        if session.phase is Phase.IN_PROGRESS:
            logger.info("window closed before submission; discarding attempt")
            session.abandon()
        pygame.quit()

    return 0
