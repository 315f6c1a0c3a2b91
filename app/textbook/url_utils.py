from __future__ import annotations
from urllib.parse import quote

def page_image_url(book_id: str, page_number: int) -> str:
    # 페이지 번호는 1부터
    return f"/textbooks/{quote(book_id)}/pages/{page_number}/image"
