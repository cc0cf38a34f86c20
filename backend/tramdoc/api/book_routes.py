from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, col, or_, select

from ..core.db import get_session
from ..models.book import Book, BookCreate, BookStatus, BookUpdate
from ..models.note import Note
from ..models.user import User
from .deps import get_current_user

logger = logging.getLogger(__name__)


def create_books_router() -> APIRouter:
    router = APIRouter(prefix="/api/books", tags=["books"])

    def _get_owned_book(session: Session, user: User, book_id: int) -> Book:
        book = session.exec(select(Book).where(Book.id == book_id, Book.user_id == user.id)).first()
        if not book:
            raise HTTPException(status_code=404, detail="Book not found")
        return book

    @router.get("")
    def list_books(
        status: BookStatus | None = None,
        search: str | None = None,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        query = select(Book).where(Book.user_id == user.id)
        if status:
            query = query.where(Book.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(col(Book.title).ilike(pattern), col(Book.authors).ilike(pattern)))
        books = session.exec(query.order_by(col(Book.created_at).desc(), col(Book.id).desc())).all()
        return {"books": [_book_to_dict(b) for b in books], "count": len(books)}

    @router.post("", status_code=201)
    def create_book(
        book_in: BookCreate,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        # Only non-empty identifiers count as duplicates
        identifiers = []
        if book_in.isbn:
            identifiers.append(Book.isbn == book_in.isbn)
        if book_in.google_id:
            identifiers.append(Book.google_id == book_in.google_id)
        if identifiers:
            existing = session.exec(
                select(Book).where(Book.user_id == user.id).where(or_(*identifiers))
            ).first()
            if existing:
                raise HTTPException(status_code=409, detail="Book already exists in your library")

        book = Book(**book_in.model_dump(), user_id=user.id)
        _stamp_status_dates(book, None)
        session.add(book)
        session.commit()
        session.refresh(book)
        logger.info("User %s added book %s", user.id, book.id)
        return _book_to_dict(book)

    @router.get("/{book_id}")
    def get_book(
        book_id: int,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        return _book_to_dict(_get_owned_book(session, user, book_id))

    @router.put("/{book_id}")
    def update_book(
        book_id: int,
        book_in: BookUpdate,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        book = _get_owned_book(session, user, book_id)
        old_status = book.status
        for key, value in book_in.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(book, key, value)
        _stamp_status_dates(book, old_status)
        book.updated_at = datetime.utcnow()
        session.add(book)
        session.commit()
        session.refresh(book)
        return _book_to_dict(book)

    @router.delete("/{book_id}")
    def delete_book(
        book_id: int,
        user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> dict[str, str]:
        book = _get_owned_book(session, user, book_id)
        for note in session.exec(select(Note).where(Note.book_id == book.id)).all():
            session.delete(note)
        session.delete(book)
        session.commit()
        logger.info("User %s deleted book %s", user.id, book_id)
        return {"message": "Book deleted successfully"}

    return router


def _stamp_status_dates(book: Book, old_status: BookStatus | None) -> None:
    if book.status == old_status:
        return
    now = datetime.utcnow()
    if book.status == BookStatus.READING and book.start_date is None:
        book.start_date = now
    elif book.status == BookStatus.READ:
        if book.start_date is None:
            book.start_date = now
        book.finish_date = now


def _book_to_dict(book: Book) -> dict[str, Any]:
    return {
        "id": book.id,
        "user_id": book.user_id,
        "title": book.title,
        "authors": book.authors,
        "isbn": book.isbn,
        "google_id": book.google_id,
        "publisher": book.publisher,
        "publish_date": book.publish_date,
        "description": book.description,
        "cover_url": book.cover_url,
        "page_count": book.page_count,
        "status": book.status,
        "progress": book.progress,
        "location": book.location,
        "rating": book.rating,
        "start_date": book.start_date.isoformat() if book.start_date else None,
        "finish_date": book.finish_date.isoformat() if book.finish_date else None,
        "created_at": book.created_at.isoformat() if book.created_at else None,
        "updated_at": book.updated_at.isoformat() if book.updated_at else None,
    }
