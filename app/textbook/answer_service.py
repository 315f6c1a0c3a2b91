# app/textbook/answer_service.py
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.llm.client import get_llm
from app.textbook.models import Book

logger = logging.getLogger("chat")

NOT_AVAILABLE_ANSWER = "The answer is not available in the provided textbooks."
ERROR_ANSWER = "Error communicating with the AI. Please try again."

SYSTEM_INSTRUCTION = """
You are an AI assistant embedded in a multi-textbook study application.
The user uploads multiple textbook PDFs containing text and images.
Your core mission: BE A COMPLETE RETRIEVAL ENGINE ACROSS ALL BOOKS.

Rules for "Multi-Book Global Deep Search":
1. CROSS-BOOK SEARCH: Analyze EVERY page provided across ALL uploaded textbooks.
2. SYNTHESIS:
   - Combine introductory concepts from one book with detailed technical explanations from another if they share the same topic.
   - Organize logically: Basic concepts -> Technical details -> Practical/Clinical applications.
3. VISUAL IDENTIFICATION: Identify relevant figures or tables from any of the books.
4. RESPONSE FORMAT & ATTRIBUTION:
   - Use verbatim extracts ONLY. Do not paraphrase.
   - CITE EVERY SOURCE. Format: (Book: "<name>", Page: <n>).
   - AT THE END, provide a single line listing key visual references in this format:
     VISUAL_REFERENCES: [Book: "<name>", Page: <n>; Book: "<name>", Page: <m>]
5. NO EARLY TERMINATION: Do not stop searching after finding an answer in the first book. Scan everything.
6. HONESTY: Only say "Not available" if the topic is absent from all provided pages of all books.
""".strip()


def _image_part(image: bytes) -> Dict[str, Any]:
    b64 = base64.b64encode(image).decode("ascii")
    return {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{b64}"}}


def build_page_parts(books: Sequence[Book]) -> List[Dict[str, Any]]:
    """
    모든 교재의 모든 페이지를 (텍스트, 이미지) 순서로 펼친다
    """
    parts: List[Dict[str, Any]] = []
    for book_idx, book in enumerate(books):
        for p in book.pages:
            parts.append({
                "type": "text",
                "text": f'BOOK: "{book.name}" (Index: {book_idx}), PAGE {p.page_number}:\n{p.text}',
            })
            parts.append(_image_part(p.image))
    return parts


def build_search_prompt(question: str, book_count: int) -> str:
    return f"""SEARCH REQUEST: "{question}"

IMPORTANT INSTRUCTION:
1. This is a multi-book search. You have {book_count} books available.
2. Scan through all pages of all books.
3. Use verbatim extracts only.
4. Cite every quote as (Book: "<name>", Page: <n>).
5. Identify any relevant figures and list them using the VISUAL_REFERENCES format."""


def build_messages(
    question: str,
    books: Sequence[Book],
    history: Sequence[Tuple[str, str]],
) -> List[BaseMessage]:
    messages: List[BaseMessage] = [SystemMessage(content=SYSTEM_INSTRUCTION)]

    # 이전 대화는 role/content만 (참조 정보 제외)
    for role, content in history:
        if role == "user":
            messages.append(HumanMessage(content=content))
        else:
            messages.append(AIMessage(content=content))

    parts = build_page_parts(books)
    parts.append({"type": "text", "text": build_search_prompt(question, len(books))})
    messages.append(HumanMessage(content=parts))
    return messages


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # 일부 모델은 content block 리스트로 응답
    texts = []
    for block in content or []:
        if isinstance(block, str):
            texts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            texts.append(block.get("text", ""))
    return "".join(texts)


def ask_library(
    question: str,
    books: Sequence[Book],
    history: Sequence[Tuple[str, str]] = (),
    *,
    llm: Optional[BaseChatModel] = None,
) -> str:
    """
    교재 전체(텍스트+이미지)를 한 번의 요청으로 보내고 원문 답변을 받는다.
    실패는 전파하지 않고 고정 문구로 대체 (항상 메시지가 보이도록)
    """
    messages = build_messages(question, books, history)
    pages_total = sum(b.page_count for b in books)
    logger.info("ask start | books=%d | pages=%d | history=%d", len(books), pages_total, len(history))

    try:
        llm = llm or get_llm()
        msg = llm.invoke(messages)
    except Exception:
        logger.exception("LLM call failed")
        return ERROR_ANSWER

    text = _content_text(msg.content)
    if not text.strip():
        logger.warning("LLM returned empty answer")
        return NOT_AVAILABLE_ANSWER

    logger.info("ask done | answer_len=%d", len(text))
    return text
