from __future__ import annotations

import re

import pytest

from exam_trainer.clock import CountdownClock, RealClock, utc_now_iso


def test_untimed_clock_is_inert() -> None:
    c = CountdownClock()
    c.start()
    assert c.is_running is True
    assert c.is_timed is False
    assert c.remaining() is None
    assert c.tick() is False
    assert c.expired() is False


def test_tick_reports_expiry_exactly_once() -> None:
    c = CountdownClock()
    c.start(3)
    assert [c.tick() for _ in range(5)] == [False, False, True, False, False]
    assert c.remaining() == 0
    assert c.expired() is True


def test_ticks_before_start_and_after_stop_are_ignored() -> None:
    c = CountdownClock()
    assert c.tick() is False
    c.start(10)
    c.tick()
    c.stop()
    for _ in range(3):
        assert c.tick() is False
    assert c.remaining() == 9
    assert c.is_running is False


@pytest.mark.parametrize("duration", [0, -5])
def test_non_positive_duration_is_rejected(duration: int) -> None:
    with pytest.raises(ValueError):
        CountdownClock().start(duration)


def test_real_clock_is_monotonic() -> None:
    clock = RealClock()
    a = clock.now()
    b = clock.now()
    assert b >= a


def test_utc_now_iso_format() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", utc_now_iso())
