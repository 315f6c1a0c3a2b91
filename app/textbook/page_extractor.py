# app/textbook/page_extractor.py
from __future__ import annotations

import logging
import os
from typing import List, Optional

import fitz

from app.core.config import settings
from app.textbook.models import Book, Page, new_book_id

logger = logging.getLogger("textbook")


class DocumentError(Exception):
    """업로드된 바이트가 유효한 PDF가 아닐 때"""


def book_name_from_filename(filename: str) -> str:
    # 윈도우/리눅스 경로 모두 대응: basename만 추출 후 확장자 제거
    base = os.path.basename((filename or "").replace("\\", "/"))
    stem, ext = os.path.splitext(base)
    if ext.lower() == ".pdf" and stem:
        return stem
    return base or "untitled"


def _page_text(page: fitz.Page) -> str:
    # 단어 단위 조각을 content stream 순서 그대로 공백 하나로 연결
    words = page.get_text("words", sort=False) or []
    return " ".join(w[4] for w in words if w[4])


def _render_jpeg(page: fitz.Page, zoom: float, jpeg_quality: int) -> bytes:
    mat = fitz.Matrix(zoom, zoom)
    pix = page.get_pixmap(matrix=mat, alpha=False)
    return pix.tobytes("jpeg", jpg_quality=jpeg_quality)


def extract_pages(
    data: bytes,
    *,
    max_pages: Optional[int] = None,
    zoom: Optional[float] = None,
    jpeg_quality: Optional[int] = None,
    name: str = "-",
) -> List[Page]:
    """
    PDF 바이트를 페이지 단위로 처리:
    - 1페이지부터 min(전체 페이지, max_pages)까지
    - 고정 배율로 렌더링한 JPEG + 페이지 텍스트
    실패 시 DocumentError (부분 결과 없음)
    """
    max_pages = settings.MAX_PAGES if max_pages is None else max_pages
    zoom = settings.RENDER_ZOOM if zoom is None else zoom
    jpeg_quality = settings.JPEG_QUALITY if jpeg_quality is None else jpeg_quality

    if not data:
        raise DocumentError("Empty document")

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise DocumentError(f"Failed to open PDF: {e}") from e

    try:
        if doc.page_count == 0:
            raise DocumentError("PDF has no pages")

        pages_total = doc.page_count
        total_pages = min(pages_total, max_pages)
        pages: List[Page] = []
        for page_no in range(total_pages):
            page = doc.load_page(page_no)
            pages.append(
                Page(
                    page_number=page_no + 1,
                    image=_render_jpeg(page, zoom, jpeg_quality),
                    text=_page_text(page),
                )
            )
        logger.info("loaded book=%s | pages_total=%d | pages_kept=%d", name, pages_total, len(pages))
        return pages
    except DocumentError:
        raise
    except Exception as e:
        raise DocumentError(f"Failed to render PDF: {e}") from e
    finally:
        doc.close()


def build_book(filename: str, data: bytes, **kwargs) -> Book:
    name = book_name_from_filename(filename)
    pages = extract_pages(data, name=name, **kwargs)
    return Book(book_id=new_book_id(), name=name, pages=tuple(pages))
