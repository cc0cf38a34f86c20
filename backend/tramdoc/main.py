from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlmodel import Session, func, select

from .api.auth import limiter
from .api.auth import router as auth_router
from .api.book_routes import create_books_router
from .api.note_routes import create_notes_router
from .core.config import get_config
from .core.db import get_session, init_db
from .core.errors import TramDocError
from .core.logger import setup_logging
from .models.book import Book
from .models.note import Note

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

setup_logging()
config = get_config()

_start_time = time.time()

app = FastAPI(
    title="Tram Doc API",
    version=VERSION,
    description="Reading tracker with notes and spaced-repetition flashcards.",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"error": "rate_limited", "detail": "Too many requests, please try again later"})


@app.exception_handler(TramDocError)
async def domain_error_handler(request: Request, exc: TramDocError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error_code, "detail": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": "An unexpected error occurred"})


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(create_books_router())
app.include_router(create_notes_router())


@app.get("/health")
def healthcheck(session: Session = Depends(get_session)) -> dict:
    uptime = int(time.time() - _start_time)
    total_books = session.exec(select(func.count(Book.id))).one()
    total_notes = session.exec(select(func.count(Note.id))).one()
    total_flashcards = session.exec(
        select(func.count(Note.id)).where(Note.is_flashcard == True)  # noqa: E712
    ).one()
    return {
        "status": "ok",
        "version": VERSION,
        "uptime_seconds": uptime,
        "total_books": total_books,
        "total_notes": total_notes,
        "total_flashcards": total_flashcards,
    }


@app.on_event("startup")
async def on_startup() -> None:
    init_db()
    logger.info("Tram Doc API %s started", VERSION)
