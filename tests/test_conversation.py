import pytest

from app.textbook.conversation import Conversation, NavigateTo, append_message, history
from app.textbook.models import Reference, new_message


def test_assistant_message_with_references_navigates_to_first():
    refs = (
        Reference(book_id="b1", book_index=0, page_number=4),
        Reference(book_id="b2", book_index=1, page_number=1),
    )
    conv, commands = append_message(Conversation(), new_message("assistant", "answer", refs))

    assert commands == [NavigateTo(book_id="b1", page_number=4)]
    assert len(conv.messages) == 1


def test_no_navigation_without_references():
    conv, commands = append_message(Conversation(), new_message("user", "question"))
    conv, more = append_message(conv, new_message("assistant", "no refs"))

    assert commands == [] and more == []
    assert [m.role for m in conv.messages] == ["user", "assistant"]


def test_append_is_non_destructive():
    first, _ = append_message(Conversation(), new_message("user", "q1"))
    second, _ = append_message(first, new_message("user", "q2"))

    assert len(first.messages) == 1
    assert len(second.messages) == 2
    assert second.messages[0] is first.messages[0]


def test_history_strips_references():
    ref = Reference(book_id="b1", book_index=0, page_number=1)
    conv, _ = append_message(Conversation(), new_message("user", "q"))
    conv, _ = append_message(conv, new_message("assistant", "a", (ref,)))

    assert history(conv) == [("user", "q"), ("assistant", "a")]


def test_message_ids_are_unique_and_role_checked():
    assert new_message("user", "x").id != new_message("user", "x").id
    with pytest.raises(ValueError):
        new_message("system", "x")
