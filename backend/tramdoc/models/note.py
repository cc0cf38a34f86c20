"""Notes, highlights and the spaced-repetition state carried on each note."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlmodel import Field, SQLModel


class NoteType(StrEnum):
    NOTE = "note"
    HIGHLIGHT = "highlight"
    QUOTE = "quote"
    TAKEAWAY = "takeaway"


class Note(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    book_id: int = Field(foreign_key="book.id", index=True)

    content: str
    page: int = Field(default=0)
    type: NoteType = Field(default=NoteType.NOTE)

    # SM-2 state, written only by promotion and review
    is_flashcard: bool = Field(default=False, index=True)
    review_count: int = Field(default=0)
    ease: float = Field(default=2.5)
    interval: int = Field(default=0)
    next_review: datetime | None = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class NoteCreate(SQLModel):
    book_id: int
    content: str = Field(min_length=1)
    page: int = Field(default=0, ge=0)
    type: NoteType = NoteType.NOTE


class NoteUpdate(SQLModel):
    content: str | None = Field(default=None, min_length=1)
    page: int | None = Field(default=None, ge=0)
    type: NoteType | None = None


class FlashcardCreate(SQLModel):
    note_id: int


class ReviewRequest(SQLModel):
    # Taken as sent; validate_quality rejects bools, strings, floats and out-of-range scores
    quality: Any
