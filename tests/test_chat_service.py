from unittest.mock import patch

import pytest

from haircare.errors import NotFoundError, PersistenceError, ValidationError
from haircare.rules import Rule
from haircare.services.chat_service import ChatService
from haircare.services.conversation_store import ConversationStore
from haircare.services.response_matcher import DEFAULT_REPLY

RULES = (
    Rule(keywords=("dandruff",), scalp="dry", response="dry-scalp dandruff"),
    Rule(keywords=("dandruff",), response="generic dandruff"),
)


@pytest.fixture
def service(clock):
    return ChatService(rules=RULES, clock=clock)


def test_first_message_creates_conversation_and_reply(service, session, make_profile):
    profile = make_profile("u1", scalp_condition="dry")

    turn = service.send_message(session, profile, None, "  I have a dry scalp and dandruff  ")

    assert turn.created_conversation
    assert turn.conversation.title == "I have a dry scalp and dandruff"
    assert turn.user_message.role == "user"
    assert turn.user_message.content == "I have a dry scalp and dandruff"
    assert turn.assistant_message.role == "assistant"
    assert turn.assistant_message.content == "dry-scalp dandruff"

    messages = ConversationStore(session).list_messages(turn.conversation.id)
    assert [m.id for m in messages] == [turn.user_message.id, turn.assistant_message.id]


def test_follow_up_appends_to_existing_conversation(service, session, make_profile):
    profile = make_profile("u1")
    first = service.send_message(session, profile, None, "dandruff?")
    second = service.send_message(session, profile, first.conversation.id, "anything else")

    assert not second.created_conversation
    assert second.conversation.id == first.conversation.id
    assert second.assistant_message.content == DEFAULT_REPLY

    contents = [m.content for m in ConversationStore(session).list_messages(first.conversation.id)]
    assert contents == ["dandruff?", "generic dandruff", "anything else", DEFAULT_REPLY]


def test_reply_uses_profile_filters(service, session, make_profile):
    oily = make_profile("oily", scalp_condition="oily")
    assert service.send_message(session, oily, None, "dandruff").assistant_message.content == "generic dandruff"


def test_empty_message_is_rejected_before_any_write(service, session, make_profile):
    profile = make_profile("u1")
    with pytest.raises(ValidationError):
        service.send_message(session, profile, None, "   ")

    assert ConversationStore(session).list_conversations(profile.id) == []


def test_foreign_conversation_is_not_found(service, session, make_profile):
    alice = make_profile("alice")
    bob = make_profile("bob")
    turn = service.send_message(session, alice, None, "hello")

    with pytest.raises(NotFoundError):
        service.send_message(session, bob, turn.conversation.id, "let me in")


def test_persistence_failure_on_reply_keeps_user_message(service, session, make_profile):
    profile = make_profile("u1")
    turn = service.send_message(session, profile, None, "hello")

    original = ConversationStore.append_message

    def fail_for_assistant(self, conversation_id, role, content):
        if role == "assistant":
            raise PersistenceError("timeout")
        return original(self, conversation_id, role, content)

    with patch.object(ConversationStore, "append_message", fail_for_assistant):
        with pytest.raises(PersistenceError):
            service.send_message(session, profile, turn.conversation.id, "second")

    contents = [m.content for m in ConversationStore(session).list_messages(turn.conversation.id)]
    assert contents[-1] == "second"
    assert len(contents) == 3
