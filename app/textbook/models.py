# app/textbook/models.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple


@dataclass(frozen=True)
class Page:
    page_number: int  # 1-based
    image: bytes      # JPEG
    text: str


@dataclass(frozen=True)
class Book:
    book_id: str
    name: str
    pages: Tuple[Page, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class Reference:
    """
    답변에 붙는 (교재, 페이지) 참조.
    - book_id: 세션 동안 재사용되지 않는 교재 식별자 (삭제 후에도 다른 교재를 가리키지 않음)
    - book_index: 참조가 만들어진 시점의 교재 위치 (표시용)
    """
    book_id: str
    book_index: int
    page_number: int

    @property
    def key(self) -> Tuple[str, int]:
        return self.book_id, self.page_number


@dataclass(frozen=True)
class Message:
    id: str
    role: str  # "user" | "assistant"
    content: str
    references: Tuple[Reference, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def new_book_id() -> str:
    return uuid.uuid4().hex


def new_message(role: str, content: str, references: Tuple[Reference, ...] = ()) -> Message:
    if role not in ("user", "assistant"):
        raise ValueError(f"unknown role: {role}")
    return Message(
        id=uuid.uuid4().hex,
        role=role,
        content=content,
        references=tuple(references),
    )
