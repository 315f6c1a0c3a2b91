# app/textbook/session.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from langchain_core.language_models import BaseChatModel

from app.textbook.answer_service import ask_library
from app.textbook.citations import resolve_citations
from app.textbook.conversation import Conversation, NavigateTo, append_message, history
from app.textbook.library import (
    Library,
    add_books,
    find_book,
    remove_book,
    select_book,
)
from app.textbook.models import Book, Message, new_message
from app.textbook.page_extractor import build_book

logger = logging.getLogger("textbook")


class AnswerInProgress(Exception):
    """이미 답변 대기 중인 질문이 있음"""


class NoBooksLoaded(Exception):
    """질문할 교재가 없음"""


@dataclass(frozen=True)
class Preview:
    book_id: Optional[str]
    page_number: int


def welcome_text(books: Iterable[Book]) -> str:
    names = ", ".join(f'"{b.name}"' for b in books)
    return (
        f"I've successfully loaded {names}. "
        'I am now configured for "Global Deep Search" across all provided books. '
        "I will synthesize information from both introductory and advanced sections, including relevant figures."
    )


class StudySession:
    """
    교재 목록 / 대화 / 미리보기 상태를 소유하는 컨테이너.
    상태 자체는 불변 객체이고, 메서드는 순수 갱신 함수 결과로 교체만 한다.
    """

    def __init__(self) -> None:
        self.library = Library()
        self.conversation = Conversation()
        self.page_number = 1
        self._answer_lock = threading.Lock()
        # 동기 엔드포인트는 threadpool에서 돌기 때문에 상태 교체는 이 락 안에서만
        self._state_lock = threading.RLock()

    # -----------------------------
    # state views
    # -----------------------------
    @property
    def preview(self) -> Preview:
        return Preview(book_id=self.library.active_book_id, page_number=self.page_number)

    @property
    def answering(self) -> bool:
        return self._answer_lock.locked()

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self.conversation.messages

    # -----------------------------
    # library
    # -----------------------------
    def upload(self, files: Iterable[Tuple[str, bytes]]) -> List[Book]:
        """
        문서를 하나씩 순서대로 추출. 하나라도 실패하면 DocumentError를 그대로 올리고
        교재 목록은 건드리지 않는다
        """
        new_books = [build_book(filename, data) for filename, data in files]
        if not new_books:
            return []

        with self._state_lock:
            self.library = select_book(add_books(self.library, new_books), new_books[0].book_id)
            self.page_number = 1
            self._append(new_message("assistant", welcome_text(new_books)))
            logger.info("library updated | books=%d (+%d)", len(self.library), len(new_books))
        return new_books

    def remove(self, book_id: str) -> None:
        with self._state_lock:
            was_active = self.library.active_book_id == book_id
            self.library = remove_book(self.library, book_id)
            if was_active:
                self.page_number = 1
            logger.info("book removed | book_id=%s | books=%d", book_id, len(self.library))

    def select(self, book_id: str) -> Preview:
        with self._state_lock:
            if book_id != self.library.active_book_id:
                self.library = select_book(self.library, book_id)
                self.page_number = 1
            return self.preview

    # -----------------------------
    # navigation
    # -----------------------------
    def jump(self, page_number: int, book_id: Optional[str] = None) -> Preview:
        # 범위 밖 페이지는 무시 (교재/페이지 모두 그대로)
        with self._state_lock:
            target = book_id or self.library.active_book_id
            book = find_book(self.library, target) if target else None
            if book is None or not (1 <= page_number <= book.page_count):
                return self.preview
            self.library = select_book(self.library, book.book_id)
            self.page_number = page_number
            return self.preview

    def step(self, delta: int) -> Preview:
        with self._state_lock:
            return self.jump(self.page_number + delta)

    def _apply(self, command: NavigateTo) -> None:
        # 이미 삭제된 교재를 가리키면 jump가 무시한다
        self.jump(command.page_number, book_id=command.book_id)

    def _append(self, message: Message) -> None:
        with self._state_lock:
            self.conversation, commands = append_message(self.conversation, message)
            for cmd in commands:
                self._apply(cmd)

    # -----------------------------
    # chat
    # -----------------------------
    def ask(self, question: str, *, llm: Optional[BaseChatModel] = None) -> Message:
        question = (question or "").strip()
        if not question:
            raise ValueError("question must not be empty")
        if not self.library.books:
            raise NoBooksLoaded()
        if not self._answer_lock.acquire(blocking=False):
            raise AnswerInProgress()

        try:
            with self._state_lock:
                prior = history(self.conversation)
                self._append(new_message("user", question))

            raw = ask_library(question, self.library.books, prior, llm=llm)

            # 답변 대기 중 교재가 바뀌었을 수 있으므로 현재 목록 기준으로 검증
            with self._state_lock:
                result = resolve_citations(raw, self.library.books)
                answer = new_message("assistant", result.display_content, result.references)
                self._append(answer)
            logger.info("answer appended | references=%d", len(answer.references))
            return answer
        finally:
            self._answer_lock.release()


_session: StudySession | None = None


def get_session() -> StudySession:
    global _session
    if _session is None:
        _session = StudySession()
    return _session
