# app/textbook/conversation.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from app.textbook.models import Message


@dataclass(frozen=True)
class NavigateTo:
    """미리보기를 특정 교재/페이지로 이동시키는 명령"""
    book_id: str
    page_number: int


@dataclass(frozen=True)
class Conversation:
    messages: Tuple[Message, ...] = ()


def append_message(conv: Conversation, message: Message) -> Tuple[Conversation, List[NavigateTo]]:
    """
    append-only. 참조가 있는 assistant 메시지면 첫 번째 참조로 이동 명령을 함께 반환
    """
    commands: List[NavigateTo] = []
    if message.role == "assistant" and message.references:
        first = message.references[0]
        commands.append(NavigateTo(book_id=first.book_id, page_number=first.page_number))
    return Conversation(messages=conv.messages + (message,)), commands


def history(conv: Conversation) -> List[Tuple[str, str]]:
    return [(m.role, m.content) for m in conv.messages]
