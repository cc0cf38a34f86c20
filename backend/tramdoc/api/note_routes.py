"""Note CRUD plus the flashcard endpoints: promotion, due list and review."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, col, select

from ..core.db import get_session
from ..models.book import Book
from ..models.note import FlashcardCreate, Note, NoteCreate, NoteType, NoteUpdate, ReviewRequest
from ..models.user import User
from ..services.flashcards import FlashcardService
from .deps import get_current_user

logger = logging.getLogger(__name__)


def create_notes_router() -> APIRouter:
    router = APIRouter(prefix="/api/notes", tags=["notes"])

    def _get_owned_note(session: Session, user: User, note_id: int) -> Note:
        note = session.exec(select(Note).where(Note.id == note_id, Note.user_id == user.id)).first()
        if not note:
            raise HTTPException(status_code=404, detail="Note not found")
        return note

    # ------------------------------------------------------------------
    # Notes CRUD
    # ------------------------------------------------------------------

    @router.get("")
    def list_notes(
        book_id: int | None = None,
        type: NoteType | None = None,
        search: str | None = None,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        query = select(Note).where(Note.user_id == user.id)
        if book_id is not None:
            query = query.where(Note.book_id == book_id)
        if type:
            query = query.where(Note.type == type)
        if search:
            query = query.where(col(Note.content).ilike(f"%{search}%"))
        notes = session.exec(query.order_by(col(Note.created_at).desc(), col(Note.id).desc())).all()
        return {"notes": _notes_to_dicts(session, notes), "count": len(notes)}

    @router.post("", status_code=201)
    def create_note(
        note_in: NoteCreate,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        book = session.exec(select(Book).where(Book.id == note_in.book_id, Book.user_id == user.id)).first()
        if not book:
            raise HTTPException(status_code=404, detail="Book not found")

        note = Note(
            user_id=user.id,
            book_id=book.id,
            content=note_in.content,
            page=note_in.page,
            type=note_in.type,
        )
        session.add(note)
        session.commit()
        session.refresh(note)
        return _note_to_dict(note, session.get(Book, note.book_id))

    # ------------------------------------------------------------------
    # Spaced repetition
    # ------------------------------------------------------------------

    @router.post("/flashcard")
    def create_flashcard(
        body: FlashcardCreate,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        next_review = FlashcardService(session).promote(user.id, body.note_id)
        return {
            "message": "Flashcard created successfully",
            "next_review": next_review.isoformat(),
        }

    @router.get("/review")
    def get_review_notes(
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> list[dict[str, Any]]:
        return _notes_to_dicts(session, FlashcardService(session).due(user.id))

    @router.post("/{note_id}/review")
    def review_flashcard(
        note_id: int,
        body: ReviewRequest,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        outcome = FlashcardService(session).review(user.id, note_id, body.quality)
        return {
            "message": "Review recorded successfully",
            "next_review": outcome.next_review.isoformat(),
            "interval": outcome.interval,
            "ease": outcome.ease,
            "review_count": outcome.review_count,
        }

    # ------------------------------------------------------------------
    # Single note
    # ------------------------------------------------------------------

    @router.get("/{note_id}")
    def get_note(
        note_id: int,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        note = _get_owned_note(session, user, note_id)
        return _note_to_dict(note, session.get(Book, note.book_id))

    @router.put("/{note_id}")
    def update_note(
        note_id: int,
        note_in: NoteUpdate,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        note = _get_owned_note(session, user, note_id)
        # Flashcard fields are not part of NoteUpdate; only reviews move them
        for key, value in note_in.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(note, key, value)
        note.updated_at = datetime.utcnow()
        session.add(note)
        session.commit()
        session.refresh(note)
        return _note_to_dict(note, session.get(Book, note.book_id))

    @router.delete("/{note_id}")
    def delete_note(
        note_id: int,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, str]:
        note = _get_owned_note(session, user, note_id)
        session.delete(note)
        session.commit()
        return {"message": "Note deleted successfully"}

    return router


def _notes_to_dicts(session: Session, notes: list[Note]) -> list[dict[str, Any]]:
    book_ids = {n.book_id for n in notes}
    books = {}
    if book_ids:
        books = {b.id: b for b in session.exec(select(Book).where(col(Book.id).in_(book_ids))).all()}
    return [_note_to_dict(n, books.get(n.book_id)) for n in notes]


def _note_to_dict(note: Note, book: Book | None = None) -> dict[str, Any]:
    return {
        "id": note.id,
        "user_id": note.user_id,
        "book_id": note.book_id,
        "book": _book_summary(book) if book else None,
        "content": note.content,
        "page": note.page,
        "type": note.type,
        "is_flashcard": note.is_flashcard,
        "review_count": note.review_count,
        "ease": note.ease,
        "interval": note.interval,
        "next_review": note.next_review.isoformat() if note.next_review else None,
        "created_at": note.created_at.isoformat() if note.created_at else None,
        "updated_at": note.updated_at.isoformat() if note.updated_at else None,
    }


def _book_summary(book: Book) -> dict[str, Any]:
    return {
        "id": book.id,
        "title": book.title,
        "authors": book.authors,
        "cover_url": book.cover_url,
    }
