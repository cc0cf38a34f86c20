from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import NotFoundError
from ..models.note import Note
from .srs_engine import ReviewOutcome, SRSEngine, validate_quality

logger = logging.getLogger(__name__)


class FlashcardService:
    """Promotion, due lookup and review of a user's note flashcards."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _get_owned_note(self, user_id: int, note_id: int, flashcards_only: bool = False) -> Note:
        query = select(Note).where(Note.id == note_id, Note.user_id == user_id)
        if flashcards_only:
            query = query.where(Note.is_flashcard == True)  # noqa: E712
        note = self.session.exec(query).first()
        if not note:
            raise NotFoundError("Flashcard not found" if flashcards_only else "Note not found")
        return note

    def _commit(self, note: Note, action: str) -> None:
        self.session.add(note)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to %s note %s", action, note.id)
            raise
        self.session.refresh(note)

    def promote(self, user_id: int, note_id: int, now: datetime | None = None) -> datetime:
        note = self._get_owned_note(user_id, note_id)
        next_review = SRSEngine.promote(note, now)
        self._commit(note, "promote")
        logger.info("Note %s promoted to flashcard for user %s, due %s", note_id, user_id, next_review.isoformat())
        return next_review

    def due(self, user_id: int, now: datetime | None = None) -> list[Note]:
        now = now or datetime.utcnow()
        return list(
            self.session.exec(
                select(Note)
                .where(Note.user_id == user_id)
                .where(Note.is_flashcard == True)  # noqa: E712
                .where(Note.next_review <= now)
                .order_by(Note.next_review, Note.id)
            ).all()
        )

    def review(self, user_id: int, note_id: int, quality: int, now: datetime | None = None) -> ReviewOutcome:
        validate_quality(quality)
        note = self._get_owned_note(user_id, note_id, flashcards_only=True)
        outcome = SRSEngine.review(note, quality, now)
        self._commit(note, "review")
        if outcome.review_count == 0:
            logger.info("Flashcard %s lapsed (quality=%d), due again in 1 day", note_id, quality)
        else:
            logger.info(
                "Flashcard %s reviewed (quality=%d): interval=%d ease=%.2f reps=%d",
                note_id, quality, outcome.interval, outcome.ease, outcome.review_count,
            )
        return outcome
