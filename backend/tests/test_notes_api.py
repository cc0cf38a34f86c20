from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from tramdoc.models.note import Note


def _create_book(client, headers, title="Thinking, Fast and Slow"):
    response = client.post("/api/books", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


def _create_note(client, headers, book_id, content="System 1 is fast", **extra):
    response = client.post(
        "/api/notes", json={"book_id": book_id, "content": content, **extra}, headers=headers
    )
    assert response.status_code == 201
    return response.json()


def _make_due(engine, note_id):
    with Session(engine) as session:
        note = session.get(Note, note_id)
        note.next_review = datetime.utcnow() - timedelta(minutes=1)
        session.add(note)
        session.commit()


def test_notes_require_auth(client):
    assert client.get("/api/notes").status_code == 401
    assert client.get("/api/notes/review").status_code == 401


def test_create_and_list_notes(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    created = _create_note(client, auth_headers, book_id, page=12, type="highlight")
    assert created["type"] == "highlight"
    assert created["is_flashcard"] is False
    assert created["ease"] == 2.5
    assert created["interval"] == 0
    assert created["next_review"] is None

    response = client.get("/api/notes", headers=auth_headers)
    data = response.json()
    assert data["count"] == 1
    assert data["notes"][0]["content"] == "System 1 is fast"


def test_list_notes_filters(client, auth_headers):
    book_a = _create_book(client, auth_headers, "Book A")
    book_b = _create_book(client, auth_headers, "Book B")
    _create_note(client, auth_headers, book_a, "Anchoring effect", type="quote")
    _create_note(client, auth_headers, book_b, "Loss aversion")

    by_book = client.get("/api/notes", params={"book_id": book_b}, headers=auth_headers).json()
    assert [n["content"] for n in by_book["notes"]] == ["Loss aversion"]

    by_type = client.get("/api/notes", params={"type": "quote"}, headers=auth_headers).json()
    assert [n["content"] for n in by_type["notes"]] == ["Anchoring effect"]

    by_search = client.get("/api/notes", params={"search": "ANCHOR"}, headers=auth_headers).json()
    assert by_search["count"] == 1


def test_create_note_on_foreign_book(client, auth_headers, other_headers):
    book_id = _create_book(client, other_headers)
    response = client.post("/api/notes", json={"book_id": book_id, "content": "x"}, headers=auth_headers)
    assert response.status_code == 404


def test_update_note_ignores_flashcard_fields(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    response = client.put(
        f"/api/notes/{note['id']}",
        json={"content": "Edited", "ease": 9.0, "is_flashcard": True},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "Edited"
    assert data["ease"] == 2.5
    assert data["is_flashcard"] is False


def test_delete_note(client, auth_headers, other_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    assert client.delete(f"/api/notes/{note['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/notes/{note['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/notes/{note['id']}", headers=auth_headers).status_code == 404


def test_promote_to_flashcard(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)

    before = datetime.utcnow()
    response = client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)
    assert response.status_code == 200
    next_review = datetime.fromisoformat(response.json()["next_review"])
    assert before + timedelta(days=1) <= next_review <= datetime.utcnow() + timedelta(days=1)

    stored = client.get(f"/api/notes/{note['id']}", headers=auth_headers).json()
    assert stored["is_flashcard"] is True
    assert stored["interval"] == 1
    assert stored["review_count"] == 0


def test_promote_foreign_note_is_404(client, auth_headers, other_headers):
    book_id = _create_book(client, other_headers)
    note = _create_note(client, other_headers, book_id)
    response = client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_review_queue_only_contains_due_cards(client, engine, auth_headers):
    book_id = _create_book(client, auth_headers)
    due = _create_note(client, auth_headers, book_id, "due card")
    pending = _create_note(client, auth_headers, book_id, "not yet")
    _create_note(client, auth_headers, book_id, "plain note")
    for note in (due, pending):
        client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)

    assert client.get("/api/notes/review", headers=auth_headers).json() == []

    _make_due(engine, due["id"])
    response = client.get("/api/notes/review", headers=auth_headers)
    assert response.status_code == 200
    assert [n["content"] for n in response.json()] == ["due card"]


def test_review_flashcard_progression(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)

    intervals = []
    for _ in range(3):
        response = client.post(f"/api/notes/{note['id']}/review", json={"quality": 4}, headers=auth_headers)
        assert response.status_code == 200
        intervals.append(response.json()["interval"])
    assert intervals == [1, 6, 15]

    data = response.json()
    assert data["review_count"] == 3
    assert abs(data["ease"] - 2.5) < 1e-9
    assert "next_review" in data

    lapse = client.post(f"/api/notes/{note['id']}/review", json={"quality": 2}, headers=auth_headers).json()
    assert lapse["review_count"] == 0
    assert lapse["interval"] == 1


def test_review_invalid_quality(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)

    response = client.post(f"/api/notes/{note['id']}/review", json={"quality": 6}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_argument"

    stored = client.get(f"/api/notes/{note['id']}", headers=auth_headers).json()
    assert stored["review_count"] == 0
    assert stored["interval"] == 1


@pytest.mark.parametrize("quality", [True, "5", 3.5, None])
def test_review_non_integer_quality_keeps_mature_card(client, auth_headers, quality):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)
    for _ in range(2):
        client.post(f"/api/notes/{note['id']}/review", json={"quality": 4}, headers=auth_headers)
    before = client.get(f"/api/notes/{note['id']}", headers=auth_headers).json()
    assert (before["review_count"], before["interval"]) == (2, 6)

    response = client.post(f"/api/notes/{note['id']}/review", json={"quality": quality}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_argument"

    after = client.get(f"/api/notes/{note['id']}", headers=auth_headers).json()
    for field in ("review_count", "interval", "ease", "next_review"):
        assert after[field] == before[field]


def test_review_without_quality_is_422(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=auth_headers)
    response = client.post(f"/api/notes/{note['id']}/review", json={}, headers=auth_headers)
    assert response.status_code == 422


def test_review_non_flashcard_is_404(client, auth_headers):
    book_id = _create_book(client, auth_headers)
    note = _create_note(client, auth_headers, book_id)
    response = client.post(f"/api/notes/{note['id']}/review", json={"quality": 5}, headers=auth_headers)
    assert response.status_code == 404


def test_review_foreign_flashcard_is_404(client, auth_headers, other_headers):
    book_id = _create_book(client, other_headers)
    note = _create_note(client, other_headers, book_id)
    client.post("/api/notes/flashcard", json={"note_id": note["id"]}, headers=other_headers)
    response = client.post(f"/api/notes/{note['id']}/review", json={"quality": 5}, headers=auth_headers)
    assert response.status_code == 404


def test_notes_embed_book_summary(client, engine, auth_headers):
    book_id = _create_book(client, auth_headers, "Antifragile")
    created = _create_note(client, auth_headers, book_id)
    assert created["book"] == {"id": book_id, "title": "Antifragile", "authors": "", "cover_url": ""}

    listed = client.get("/api/notes", headers=auth_headers).json()["notes"]
    assert listed[0]["book"]["title"] == "Antifragile"

    client.post("/api/notes/flashcard", json={"note_id": created["id"]}, headers=auth_headers)
    _make_due(engine, created["id"])
    due = client.get("/api/notes/review", headers=auth_headers).json()
    assert due[0]["book"]["id"] == book_id
