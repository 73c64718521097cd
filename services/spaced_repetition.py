"""
SM-2 style scheduling for opening positions.

A review is graded only as correct or incorrect. Correct answers are
treated as SM-2 quality 4, whose ease delta is exactly zero, so the ease
factor only moves down (on misses) and is never pushed above its cap.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta

from models.opening_progress import (
    DEFAULT_EASE_FACTOR,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    OpeningProgress,
)

CORRECT_QUALITY = 4
MISS_PENALTY = 0.2
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


def quality_delta(quality: int) -> float:
    """SM-2 ease adjustment for a response of the given quality (0-5)."""
    return 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)


def clamp_ease(ease: float) -> float:
    return min(MAX_EASE_FACTOR, max(MIN_EASE_FACTOR, round(ease, 4)))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def new_progress(user_id: str, repertoire_id: str, node_id: str, now: datetime) -> OpeningProgress:
    return OpeningProgress(
        user_id=user_id,
        repertoire_id=repertoire_id,
        node_id=node_id,
        times_reviewed=0,
        times_correct=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=FIRST_INTERVAL,
        next_review=now,
        last_review=now,
        streak=0,
    )


def reset(progress: OpeningProgress, now: datetime) -> OpeningProgress:
    progress.times_reviewed = 0
    progress.times_correct = 0
    progress.ease_factor = DEFAULT_EASE_FACTOR
    progress.interval = FIRST_INTERVAL
    progress.next_review = now
    progress.last_review = now
    progress.streak = 0
    return progress


def apply_review(progress: OpeningProgress, was_correct: bool, now: datetime) -> OpeningProgress:
    """Record one review in place and schedule the next one."""
    progress.times_reviewed += 1
    progress.last_review = now

    if was_correct:
        progress.times_correct += 1
        progress.streak += 1
        if progress.times_reviewed == 1:
            progress.interval = FIRST_INTERVAL
        elif progress.times_reviewed == 2:
            progress.interval = SECOND_INTERVAL
        else:
            progress.interval = max(1, round_half_up(progress.interval * progress.ease_factor))
        progress.ease_factor = clamp_ease(progress.ease_factor + quality_delta(CORRECT_QUALITY))
    else:
        progress.streak = 0
        progress.interval = FIRST_INTERVAL
        progress.ease_factor = clamp_ease(progress.ease_factor - MISS_PENALTY)

    progress.next_review = now + timedelta(days=progress.interval)
    return progress
