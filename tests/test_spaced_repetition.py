from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.spaced_repetition import (
    apply_review,
    new_progress,
    quality_delta,
    reset,
    round_half_up,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def progress():
    return new_progress("user-1", "rep-1", "node-1", NOW)


def test_new_progress_defaults(progress):
    assert progress.times_reviewed == 0
    assert progress.ease_factor == 2.5
    assert progress.interval == 1
    assert progress.next_review == NOW
    assert progress.streak == 0


def test_quality_four_leaves_ease_unchanged():
    assert quality_delta(4) == pytest.approx(0.0)
    assert quality_delta(5) == pytest.approx(0.1)
    assert quality_delta(3) == pytest.approx(-0.14)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(14.49) == 14
    assert round_half_up(15.0) == 15


def test_correct_answers_grow_the_interval(progress):
    apply_review(progress, True, NOW)
    assert progress.interval == 1
    assert progress.next_review == NOW + timedelta(days=1)

    apply_review(progress, True, NOW)
    assert progress.interval == 6

    apply_review(progress, True, NOW)
    assert progress.interval == 15
    assert progress.next_review == NOW + timedelta(days=15)

    assert progress.times_reviewed == progress.times_correct == progress.streak == 3
    assert progress.ease_factor == pytest.approx(2.5)
    assert progress.last_review == NOW


def test_miss_resets_interval_and_streak(progress):
    for _ in range(3):
        apply_review(progress, True, NOW)

    apply_review(progress, False, NOW)

    assert progress.interval == 1
    assert progress.streak == 0
    assert progress.ease_factor == pytest.approx(2.3)
    assert progress.times_reviewed == 4
    assert progress.times_correct == 3
    assert progress.next_review == NOW + timedelta(days=1)


def test_ease_factor_never_drops_below_floor(progress):
    for _ in range(20):
        apply_review(progress, False, NOW)

    assert progress.ease_factor == pytest.approx(1.3)


def test_interval_after_misses_uses_reduced_ease(progress):
    apply_review(progress, False, NOW)  # ease 2.3
    apply_review(progress, True, NOW)  # second review -> 6
    apply_review(progress, True, NOW)

    assert progress.interval == round_half_up(6 * 2.3)


def test_reset(progress):
    for _ in range(4):
        apply_review(progress, True, NOW)
    later = NOW + timedelta(days=3)

    reset(progress, later)

    assert progress.times_reviewed == 0
    assert progress.interval == 1
    assert progress.ease_factor == 2.5
    assert progress.next_review == later
