from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.textbook.library import find_book, get_page
from app.textbook.session import StudySession, get_session

router = APIRouter(prefix="/textbooks", tags=["textbooks"])

@router.get("/{book_id}/pages/{page_number}/image")
def textbook_page_image(book_id: str, page_number: int, session: StudySession = Depends(get_session)):
    """
    업로드 시 렌더링해 둔 페이지 JPEG 반환
    page_number: 1-based
    """
    book = find_book(session.library, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail=f"Book not found: {book_id}")

    page = get_page(session.library, book_id, page_number)
    if page is None:
        raise HTTPException(status_code=404, detail=f"page_number out of range (1~{book.page_count})")

    return Response(content=page.image, media_type="image/jpeg")
