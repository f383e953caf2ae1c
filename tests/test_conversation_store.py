from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from haircare.errors import NotFoundError, PersistenceError, ValidationError
from haircare.models.conversation import Conversation
from haircare.services.conversation_store import ConversationStore


@pytest.fixture
def store(session, clock):
    return ConversationStore(session, clock=clock)


@pytest.fixture
def owner(make_profile):
    return make_profile("owner-1")


def test_create_conversation_sets_title_and_timestamps(store, owner):
    conversation = store.create_conversation(owner.id, "How do I stop frizz?")

    assert conversation.id is not None
    assert conversation.user_id == owner.id
    assert conversation.title == "How do I stop frizz?"
    assert conversation.created_at == conversation.updated_at


def test_title_of_exactly_fifty_characters_is_verbatim(store, owner):
    text = "x" * 50
    assert store.create_conversation(owner.id, text).title == text


def test_title_of_fifty_one_characters_is_truncated(store, owner):
    text = "y" * 51
    title = store.create_conversation(owner.id, text).title
    assert title == "y" * 50 + "..."


def test_create_conversation_for_unknown_owner_is_persistence_error(store):
    with pytest.raises(PersistenceError):
        store.create_conversation("nobody", "hello")

    # Session is still usable after the rollback
    assert store.list_conversations("nobody") == []


def test_create_conversation_rejects_empty_first_message(store, owner):
    with pytest.raises(ValidationError):
        store.create_conversation(owner.id, "   ")


def test_append_then_list_preserves_order(store, owner):
    conversation = store.create_conversation(owner.id, "A")
    first = store.append_message(conversation.id, "user", "A")
    second = store.append_message(conversation.id, "assistant", "B")

    messages = store.list_messages(conversation.id)
    assert [m.id for m in messages] == [first.id, second.id]
    assert [m.content for m in messages] == ["A", "B"]
    assert [m.role for m in messages] == ["user", "assistant"]


def test_append_order_holds_with_identical_timestamps(session, owner):
    instant = owner.created_at
    frozen = ConversationStore(session, clock=lambda: instant)
    conversation = frozen.create_conversation(owner.id, "same instant")
    ids = [frozen.append_message(conversation.id, "user", str(i)).id for i in range(3)]

    assert [m.id for m in frozen.list_messages(conversation.id)] == ids


def test_append_bumps_updated_at(store, owner):
    conversation = store.create_conversation(owner.id, "hello")
    created_at = conversation.updated_at

    message = store.append_message(conversation.id, "user", "hello")

    refreshed = store.get_conversation(conversation.id)
    assert refreshed.updated_at == message.created_at
    assert refreshed.updated_at > created_at


@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
def test_append_rejects_empty_content(store, owner, content):
    conversation = store.create_conversation(owner.id, "hello")
    with pytest.raises(ValidationError):
        store.append_message(conversation.id, "user", content)
    assert store.list_messages(conversation.id) == []


def test_append_rejects_unknown_role(store, owner):
    conversation = store.create_conversation(owner.id, "hello")
    with pytest.raises(ValidationError):
        store.append_message(conversation.id, "system", "hi")


def test_append_to_unknown_conversation_is_not_found(store):
    with pytest.raises(NotFoundError):
        store.append_message(9999, "user", "hello")


def test_list_messages_of_unknown_conversation_is_empty(store):
    assert store.list_messages(424242) == []


def test_list_conversations_most_recent_first(store, owner):
    x = store.create_conversation(owner.id, "X")
    y = store.create_conversation(owner.id, "Y")

    assert [c.id for c in store.list_conversations(owner.id)] == [y.id, x.id]

    store.append_message(x.id, "user", "bump")

    assert [c.id for c in store.list_conversations(owner.id)] == [x.id, y.id]


def test_list_conversations_is_scoped_to_owner(store, make_profile):
    alice = make_profile("alice")
    bob = make_profile("bob")
    store.create_conversation(alice.id, "alice's")
    store.create_conversation(bob.id, "bob's")

    titles = [c.title for c in store.list_conversations(alice.id)]
    assert titles == ["alice's"]


def test_list_conversations_respects_caller_limit(store, owner):
    for i in range(5):
        store.create_conversation(owner.id, f"thread {i}")

    assert len(store.list_conversations(owner.id, limit=3)) == 3


def test_get_conversation_checks_owner(store, make_profile):
    alice = make_profile("alice")
    bob = make_profile("bob")
    conversation = store.create_conversation(alice.id, "private")

    assert store.get_conversation(conversation.id, owner_id=alice.id).id == conversation.id
    with pytest.raises(NotFoundError):
        store.get_conversation(conversation.id, owner_id=bob.id)


def test_failed_append_leaves_conversation_unchanged(store, owner, session):
    conversation = store.create_conversation(owner.id, "stable")
    store.append_message(conversation.id, "user", "kept")
    before = store.get_conversation(conversation.id).updated_at

    with patch.object(session, "commit", side_effect=OperationalError("INSERT", {}, Exception("timeout"))):
        with pytest.raises(PersistenceError):
            store.append_message(conversation.id, "assistant", "lost")

    assert [m.content for m in store.list_messages(conversation.id)] == ["kept"]
    assert session.get(Conversation, conversation.id).updated_at == before
