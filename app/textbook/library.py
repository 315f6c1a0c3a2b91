# app/textbook/library.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from app.textbook.models import Book, Page, Reference


@dataclass(frozen=True)
class Library:
    """
    업로드 순서대로 쌓이는 교재 목록 + 미리보기용 활성 교재.
    모든 변경은 새 Library를 반환한다.
    """
    books: Tuple[Book, ...] = ()
    active_book_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.books)

    @property
    def active_book(self) -> Optional[Book]:
        if self.active_book_id is None:
            return None
        return find_book(self, self.active_book_id)


def add_books(library: Library, new_books: Iterable[Book]) -> Library:
    new_books = tuple(new_books)
    if not new_books:
        return library
    active = library.active_book_id or new_books[0].book_id
    return Library(books=library.books + new_books, active_book_id=active)


def remove_book(library: Library, book_id: str) -> Library:
    # 뒤쪽 교재들의 index는 하나씩 당겨진다
    idx = book_index(library, book_id)
    if idx is None:
        raise KeyError(book_id)

    books = library.books[:idx] + library.books[idx + 1:]
    active = library.active_book_id
    if active == book_id:
        if not books:
            active = None
        else:
            active = books[min(idx, len(books) - 1)].book_id
    return Library(books=books, active_book_id=active)


def select_book(library: Library, book_id: str) -> Library:
    if book_index(library, book_id) is None:
        raise KeyError(book_id)
    return replace(library, active_book_id=book_id)


def book_index(library: Library, book_id: str) -> Optional[int]:
    for i, b in enumerate(library.books):
        if b.book_id == book_id:
            return i
    return None


def find_book(library: Library, book_id: str) -> Optional[Book]:
    idx = book_index(library, book_id)
    return None if idx is None else library.books[idx]


def get_page(library: Library, book_id: str, page_number: int) -> Optional[Page]:
    book = find_book(library, book_id)
    if book is None or not (1 <= page_number <= book.page_count):
        return None
    return book.pages[page_number - 1]


def is_live(library: Library, ref: Reference) -> bool:
    return get_page(library, ref.book_id, ref.page_number) is not None


def live_references(library: Library, refs: Sequence[Reference]) -> List[Reference]:
    """
    렌더링 시점 필터: 삭제된 교재/범위 밖 페이지를 가리키는 참조는 건너뛴다.
    (이전 index로 다른 교재에 재매핑하지 않음)
    """
    return [r for r in refs if is_live(library, r)]
