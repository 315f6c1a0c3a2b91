import logging

import pytest

from app.textbook.page_extractor import (
    DocumentError,
    book_name_from_filename,
    build_book,
    extract_pages,
)


def test_extracts_numbered_pages_with_jpeg_and_text(make_pdf):
    data = make_pdf(["Hello world page one", "Second page", "Third page"])

    pages = extract_pages(data)

    assert [p.page_number for p in pages] == [1, 2, 3]
    assert pages[0].text == "Hello world page one"
    assert all(p.image[:2] == b"\xff\xd8" for p in pages)


def test_page_cap(make_pdf):
    data = make_pdf([f"page {i}" for i in range(1, 6)])

    pages = extract_pages(data, max_pages=2)

    assert [p.page_number for p in pages] == [1, 2]


def test_zoom_changes_render_size(make_pdf):
    data = make_pdf(["zoom"])

    small = extract_pages(data, zoom=0.5)[0]
    large = extract_pages(data, zoom=2.0)[0]

    assert len(large.image) > len(small.image)


@pytest.mark.parametrize("data", [b"", b"definitely not a pdf document"])
def test_invalid_document_raises(data):
    with pytest.raises(DocumentError):
        extract_pages(data)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Anatomy.pdf", "Anatomy"),
        ("C:\\books\\Physiology.PDF", "Physiology"),
        ("/tmp/notes.txt", "notes.txt"),
        ("", "untitled"),
    ],
)
def test_book_name_from_filename(filename, expected):
    assert book_name_from_filename(filename) == expected


def test_build_book_assigns_fresh_ids(make_pdf):
    data = make_pdf(["one"])

    a = build_book("Same.pdf", data)
    b = build_book("Same.pdf", data)

    assert a.name == b.name == "Same"
    assert a.book_id != b.book_id
    assert a.page_count == 1


def test_logs_total_and_kept_page_counts(make_pdf, caplog):
    data = make_pdf([f"page {i}" for i in range(1, 6)])

    with caplog.at_level(logging.INFO, logger="textbook"):
        build_book("Capped.pdf", data, max_pages=2)

    assert "loaded book=Capped | pages_total=5 | pages_kept=2" in caplog.text
