"""Simplified SM-2 spaced-repetition scheduling for note flashcards."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ..core.errors import InvalidArgumentError
from ..models.note import Note

INITIAL_EASE = 2.5
MIN_EASE = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass(frozen=True)
class ReviewOutcome:
    next_review: datetime
    interval: int
    ease: float
    review_count: int


def round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def validate_quality(quality: Any) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidArgumentError("quality must be an integer between 0 and 5")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidArgumentError(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    return quality


class SRSEngine:
    """SuperMemo SM-2, simplified: the ease factor is left alone on a lapse."""

    @staticmethod
    def schedule(review_count: int, interval: int, ease: float, quality: int, now: datetime) -> ReviewOutcome:
        """
        Compute the state after one review without touching any record.

        quality: 0-5
            0 = complete blackout
            1 = wrong answer
            2 = wrong, but the answer felt familiar
            3 = correct with serious difficulty
            4 = correct after some hesitation
            5 = perfect recall
        """
        validate_quality(quality)
        review_count += 1

        if quality >= PASSING_QUALITY:
            if review_count == 1:
                interval = 1
            elif review_count == 2:
                interval = 6
            else:
                interval = round_half_away_from_zero(interval * ease)
            ease = ease + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        else:
            # Lapse: restart the repetition chain
            review_count = 0
            interval = 1

        ease = max(ease, MIN_EASE)
        return ReviewOutcome(
            next_review=now + timedelta(days=interval),
            interval=interval,
            ease=ease,
            review_count=review_count,
        )

    @staticmethod
    def review(note: Note, quality: int, now: datetime | None = None) -> ReviewOutcome:
        """Apply a review to the note in place and return the new state."""
        now = now or datetime.utcnow()
        outcome = SRSEngine.schedule(note.review_count, note.interval, note.ease, quality, now)
        note.review_count = outcome.review_count
        note.interval = outcome.interval
        note.ease = outcome.ease
        note.next_review = outcome.next_review
        note.updated_at = now
        return outcome

    @staticmethod
    def promote(note: Note, now: datetime | None = None) -> datetime:
        """Turn a note into a fresh flashcard due one day from now."""
        now = now or datetime.utcnow()
        note.is_flashcard = True
        note.ease = INITIAL_EASE
        note.interval = 1
        note.review_count = 0
        note.next_review = now + timedelta(days=1)
        note.updated_at = now
        return note.next_review

