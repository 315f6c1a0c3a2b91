from typing import List

import fitz
import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models import FakeListChatModel

from app.main import app
from app.textbook import answer_service
from app.textbook.models import Book, Page
from app.textbook.session import StudySession, get_session


@pytest.fixture
def make_pdf():
    def _make(texts: List[str]) -> bytes:
        doc = fitz.open()
        for t in texts:
            page = doc.new_page()
            page.insert_text((72, 72), t)
        data = doc.tobytes()
        doc.close()
        return data
    return _make


@pytest.fixture
def make_book():
    def _make(name: str, page_count: int, book_id: str | None = None) -> Book:
        pages = tuple(
            Page(page_number=i, image=b"\xff\xd8jpeg", text=f"{name} text {i}")
            for i in range(1, page_count + 1)
        )
        return Book(book_id=book_id or f"id-{name}", name=name, pages=pages)
    return _make


@pytest.fixture
def fake_llm(monkeypatch):
    """get_llm()을 고정 응답 모델로 교체"""
    def _set(*responses: str) -> None:
        monkeypatch.setattr(
            answer_service, "get_llm", lambda: FakeListChatModel(responses=list(responses))
        )
    return _set


@pytest.fixture
def session():
    return StudySession()


@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
