# app/textbook/controller.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.textbook.library import book_index, find_book, get_page, live_references
from app.textbook.models import Message
from app.textbook.page_extractor import DocumentError
from app.textbook.schemas import (
    AskRequest,
    AskResponse,
    BookSummary,
    MessageOut,
    PageInfo,
    PreviewOut,
    PreviewRequest,
    ReferenceOut,
    UploadResponse,
)
from app.textbook.session import AnswerInProgress, NoBooksLoaded, StudySession, get_session
from app.textbook.url_utils import page_image_url

router = APIRouter(prefix="/textbooks", tags=["textbooks"])
chat_router = APIRouter(prefix="/chat", tags=["chat"])
preview_router = APIRouter(prefix="/preview", tags=["preview"])

logger = logging.getLogger("textbook")


# -----------------------------
# Converters
# -----------------------------
def _book_summaries(session: StudySession) -> List[BookSummary]:
    return [
        BookSummary(book_id=b.book_id, book_index=i, name=b.name, page_count=b.page_count)
        for i, b in enumerate(session.library.books)
    ]


def _preview_out(session: StudySession) -> PreviewOut:
    p = session.preview
    book = find_book(session.library, p.book_id) if p.book_id else None
    if book is None:
        return PreviewOut(page_number=p.page_number)
    return PreviewOut(
        book_id=book.book_id,
        book_name=book.name,
        page_number=p.page_number,
        page_count=book.page_count,
        image_url=page_image_url(book.book_id, p.page_number),
    )


def _message_out(session: StudySession, m: Message) -> MessageOut:
    # 삭제된 교재를 가리키는 참조는 렌더링 시 건너뜀
    refs: List[ReferenceOut] = []
    for r in live_references(session.library, m.references):
        book = find_book(session.library, r.book_id)
        refs.append(ReferenceOut(
            book_id=r.book_id,
            book_index=book_index(session.library, r.book_id),
            book_name=book.name,
            page_number=r.page_number,
            image_url=page_image_url(r.book_id, r.page_number),
        ))
    return MessageOut(
        id=m.id,
        role=m.role,
        content=m.content,
        references=refs,
        timestamp=m.timestamp,
    )


# -----------------------------
# Textbooks
# -----------------------------
@router.post("/upload", response_model=UploadResponse)
def upload_textbooks(
    files: List[UploadFile] = File(...),
    session: StudySession = Depends(get_session),
):
    """
    PDF 교재 업로드 (여러 개 가능):
    - 파일 순서대로 페이지 이미지 + 텍스트 추출
    - 하나라도 실패하면 아무것도 등록하지 않음
    """
    payload = [(f.filename or "untitled.pdf", f.file.read()) for f in files]
    try:
        books = session.upload(payload)
    except DocumentError as e:
        logger.warning("upload rejected | %s", e)
        raise HTTPException(status_code=422, detail=f"Failed to process PDF: {e}")

    summaries = {s.book_id: s for s in _book_summaries(session)}
    return UploadResponse(
        books=[summaries[b.book_id] for b in books],
        preview=_preview_out(session),
    )


@router.get("", response_model=List[BookSummary])
def list_textbooks(session: StudySession = Depends(get_session)):
    return _book_summaries(session)


@router.delete("/{book_id}")
def delete_textbook(book_id: str, session: StudySession = Depends(get_session)):
    try:
        session.remove(book_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Book not found: {book_id}")
    return {"ok": True, "books": _book_summaries(session)}


@router.get("/{book_id}/pages/{page_number}", response_model=PageInfo)
def get_textbook_page(book_id: str, page_number: int, session: StudySession = Depends(get_session)):
    book = find_book(session.library, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail=f"Book not found: {book_id}")
    page = get_page(session.library, book_id, page_number)
    if page is None:
        raise HTTPException(status_code=404, detail=f"page_number out of range (1~{book.page_count})")
    return PageInfo(
        book_id=book.book_id,
        book_name=book.name,
        page_number=page.page_number,
        page_count=book.page_count,
        text=page.text,
        image_url=page_image_url(book.book_id, page.page_number),
    )


# -----------------------------
# Chat
# -----------------------------
@chat_router.post("/ask", response_model=AskResponse)
def ask(req: AskRequest, session: StudySession = Depends(get_session)):
    """
    질문 -> 교재 전체 멀티모달 요청 -> 인용 파싱 -> 첫 번째 참조 페이지로 미리보기 이동
    """
    try:
        message = session.ask(req.question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NoBooksLoaded:
        raise HTTPException(status_code=400, detail="Upload a textbook before asking questions.")
    except AnswerInProgress:
        raise HTTPException(status_code=409, detail="Another question is still being answered.")

    return AskResponse(message=_message_out(session, message), preview=_preview_out(session))


@chat_router.get("/messages", response_model=List[MessageOut])
def list_messages(session: StudySession = Depends(get_session)):
    return [_message_out(session, m) for m in session.messages]


# -----------------------------
# Preview
# -----------------------------
@preview_router.get("", response_model=PreviewOut)
def get_preview(session: StudySession = Depends(get_session)):
    return _preview_out(session)


@preview_router.post("", response_model=PreviewOut)
def set_preview(req: PreviewRequest, session: StudySession = Depends(get_session)):
    if req.book_id and find_book(session.library, req.book_id) is None:
        raise HTTPException(status_code=404, detail=f"Book not found: {req.book_id}")
    # 범위 밖 페이지면 교재 선택도 바꾸지 않는다
    session.jump(req.page_number, book_id=req.book_id)
    return _preview_out(session)


@preview_router.post("/next", response_model=PreviewOut)
def next_page(session: StudySession = Depends(get_session)):
    session.step(1)
    return _preview_out(session)


@preview_router.post("/prev", response_model=PreviewOut)
def prev_page(session: StudySession = Depends(get_session)):
    session.step(-1)
    return _preview_out(session)
