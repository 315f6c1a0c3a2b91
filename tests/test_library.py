import pytest

from app.textbook.library import (
    Library,
    add_books,
    book_index,
    get_page,
    live_references,
    remove_book,
    select_book,
)
from app.textbook.models import Reference


def test_add_books_appends_and_activates_first(make_book):
    lib = add_books(Library(), [make_book("A", 2), make_book("B", 3)])
    lib = add_books(lib, [make_book("C", 1)])

    assert [b.name for b in lib.books] == ["A", "B", "C"]
    assert lib.active_book_id == "id-A"
    assert book_index(lib, "id-C") == 2


def test_remove_shifts_indices_and_clamps_active(make_book):
    lib = add_books(Library(), [make_book("A", 2), make_book("B", 3), make_book("C", 1)])
    lib = select_book(lib, "id-C")

    lib = remove_book(lib, "id-A")
    assert book_index(lib, "id-B") == 0
    assert lib.active_book_id == "id-C"

    lib = remove_book(lib, "id-C")
    assert lib.active_book_id == "id-B"

    lib = remove_book(lib, "id-B")
    assert lib.active_book_id is None
    assert lib.active_book is None


def test_remove_unknown_book_raises(make_book):
    lib = add_books(Library(), [make_book("A", 2)])

    with pytest.raises(KeyError):
        remove_book(lib, "missing")


def test_get_page_bounds(make_book):
    lib = add_books(Library(), [make_book("A", 2)])

    assert get_page(lib, "id-A", 2).page_number == 2
    assert get_page(lib, "id-A", 3) is None
    assert get_page(lib, "id-A", 0) is None


def test_stale_reference_is_dropped_not_remapped(make_book):
    lib = add_books(Library(), [make_book("A", 5), make_book("B", 5)])
    refs = [
        Reference(book_id="id-A", book_index=0, page_number=2),
        Reference(book_id="id-B", book_index=1, page_number=3),
    ]

    lib = remove_book(lib, "id-A")
    live = live_references(lib, refs)

    # B가 index 0으로 당겨졌지만, A를 가리키던 참조가 B로 옮겨가지 않는다
    assert [(r.book_id, r.page_number) for r in live] == [("id-B", 3)]
