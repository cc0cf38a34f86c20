from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel


class BookStatus(StrEnum):
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    READ = "read"


class BookBase(SQLModel):
    title: str = Field(min_length=1)
    authors: str = Field(default="")
    isbn: str = Field(default="", index=True)
    google_id: str = Field(default="")
    publisher: str = Field(default="")
    publish_date: str = Field(default="")
    description: str = Field(default="")
    cover_url: str = Field(default="")
    page_count: int = Field(default=0, ge=0)
    status: BookStatus = Field(default=BookStatus.WANT_TO_READ)
    location: str = Field(default="")  # shelf or room, for physical copies


class Book(BookBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    progress: int = Field(default=0)
    rating: int = Field(default=0)
    start_date: datetime | None = Field(default=None)
    finish_date: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class BookCreate(BookBase):
    pass


class BookUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1)
    authors: str | None = None
    isbn: str | None = None
    google_id: str | None = None
    publisher: str | None = None
    publish_date: str | None = None
    description: str | None = None
    cover_url: str | None = None
    page_count: int | None = Field(default=None, ge=0)
    status: BookStatus | None = None
    location: str | None = None
    progress: int | None = Field(default=None, ge=0)
    rating: int | None = Field(default=None, ge=0, le=5)
