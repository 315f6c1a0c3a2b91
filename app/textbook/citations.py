# app/textbook/citations.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from app.textbook.models import Book, Reference

# 모델 출력 포맷이 조금 흔들려도(콜론 누락, 공백 차이, 대소문자) 잡히도록 느슨하게
VISUAL_BLOCK_RE = re.compile(r"VISUAL_REFERENCES\s*:?\s*\[(.*?)\]", re.IGNORECASE | re.DOTALL)
PAGE_RE = re.compile(r"Page:?\s*(\d+)", re.IGNORECASE)

# 교재명 앞부분 몇 글자만 비교 (모델이 이름을 줄여 쓰는 경우 대응)
# 앞 10글자가 같은 교재가 여러 권이면 모두 매칭됨 (알려진 한계)
NAME_PREFIX_LEN = 10


@dataclass(frozen=True)
class CitationResult:
    display_content: str
    references: Tuple[Reference, ...]


def split_visual_block(answer: str) -> Tuple[str, List[str]]:
    """
    VISUAL_REFERENCES: [...] 블록을 본문에서 제거하고,
    블록 안의 항목들을 ';' 기준으로 나눠 반환
    """
    answer = answer or ""
    fragments: List[str] = []
    for m in VISUAL_BLOCK_RE.finditer(answer):
        fragments.extend(f.strip() for f in m.group(1).split(";") if f.strip())

    body = VISUAL_BLOCK_RE.sub("", answer).strip()
    return body, fragments


def match_fragment_books(fragment: str, books: Sequence[Book]) -> List[int]:
    lowered = fragment.lower()
    matched: List[int] = []
    for i, book in enumerate(books):
        prefix = book.name[:NAME_PREFIX_LEN].lower()
        if prefix and prefix in lowered:
            matched.append(i)
    return matched


def visual_references(fragments: Sequence[str], books: Sequence[Book]) -> List[Reference]:
    refs: List[Reference] = []
    for fragment in fragments:
        m = PAGE_RE.search(fragment)
        if not m:
            continue
        page_number = int(m.group(1))
        for i in match_fragment_books(fragment, books):
            refs.append(Reference(book_id=books[i].book_id, book_index=i, page_number=page_number))
    return refs


def inline_references(body: str, answer: str, books: Sequence[Book]) -> List[Reference]:
    """
    본문 전체의 'Page N' 인용을 찾아, 답변 어딘가에 정확한 교재명이 등장하는
    교재들에 귀속시킨다 (블록 항목 매칭보다 거친 휴리스틱)
    """
    named = [i for i, b in enumerate(books) if b.name and b.name in answer]
    if not named:
        return []

    refs: List[Reference] = []
    for m in PAGE_RE.finditer(body):
        page_number = int(m.group(1))
        for i in named:
            refs.append(Reference(book_id=books[i].book_id, book_index=i, page_number=page_number))
    return refs


def dedupe_references(refs: Sequence[Reference]) -> List[Reference]:
    # 중복 제거(순서 유지)
    seen = set()
    out: List[Reference] = []
    for r in refs:
        if r.key in seen:
            continue
        seen.add(r.key)
        out.append(r)
    return out


def validate_references(refs: Sequence[Reference], books: Sequence[Book]) -> List[Reference]:
    page_counts = {b.book_id: b.page_count for b in books}
    out: List[Reference] = []
    for r in refs:
        count = page_counts.get(r.book_id)
        if count is None:
            continue
        if 1 <= r.page_number <= count:
            out.append(r)
    return out


def resolve_citations(answer: str, books: Sequence[Book]) -> CitationResult:
    """
    LLM 원문 답변 -> (표시용 본문, 검증된 참조 목록)
    - 블록 참조 먼저, 그 다음 본문 인용 순서
    - 같은 (교재, 페이지)는 한 번만
    - 현재 교재 목록 기준으로 범위 밖 페이지 제거
    """
    body, fragments = split_visual_block(answer)

    refs = visual_references(fragments, books)
    refs.extend(inline_references(body, answer or "", books))

    refs = validate_references(dedupe_references(refs), books)
    return CitationResult(display_content=body, references=tuple(refs))
