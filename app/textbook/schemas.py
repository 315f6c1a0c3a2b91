# app/textbook/schemas.py
from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

class BookSummary(BaseModel):
    book_id: str
    book_index: int
    name: str
    page_count: int

class PageInfo(BaseModel):
    book_id: str
    book_name: str
    page_number: int
    page_count: int
    text: str
    image_url: str

class ReferenceOut(BaseModel):
    book_id: str
    book_index: int  # 현재 교재 목록 기준 위치
    book_name: str
    page_number: int
    image_url: str

class MessageOut(BaseModel):
    id: str
    role: str
    content: str
    references: List[ReferenceOut] = Field(default_factory=list)
    timestamp: datetime

class PreviewOut(BaseModel):
    book_id: Optional[str] = None
    book_name: Optional[str] = None
    page_number: int
    page_count: int = 0
    image_url: Optional[str] = None

class UploadResponse(BaseModel):
    books: List[BookSummary]
    preview: PreviewOut

class AskRequest(BaseModel):
    question: str = Field(..., min_length=1)

class AskResponse(BaseModel):
    message: MessageOut
    preview: PreviewOut

class PreviewRequest(BaseModel):
    book_id: Optional[str] = Field(None, description="생략하면 현재 활성 교재")
    page_number: int = Field(1, ge=1)
