import pytest

from sellexa.data.models import Conversation, Message, MessageReaction, TypingIndicator
from sellexa.stores import ChatStore, UserStore
from sellexa.tests.fakes import FakeAuth, make_user


async def _store() -> ChatStore:
    user_store = UserStore(FakeAuth(make_user("me")))
    await user_store.initialize_user()
    store = ChatStore(user_store)
    store.set_conversations([
        Conversation(thread_id="t1", unread_count=1),
        Conversation(thread_id="t2"),
    ])
    return store


def _message(message_id: str, thread_id: str, sender_id: str, body: str = "hi") -> Message:
    return Message(id=message_id, thread_id=thread_id, sender_id=sender_id, body=body)


def test_unread_count_is_clamped_on_update() -> None:
    conversation = Conversation(thread_id="t1", unread_count=-3)
    assert conversation.unread_count == 0


@pytest.mark.asyncio
async def test_unread_count_never_negative() -> None:
    store = await _store()

    store.update_conversation("t1", unread_count=store.get_unread_count("t1") - 5)

    assert store.get_unread_count("t1") == 0
    assert store.get_total_unread_count() == 0


@pytest.mark.asyncio
async def test_add_message_counts_unread_only_for_others_in_background_threads() -> None:
    store = await _store()
    store.set_current_thread("t2")

    store.add_message("t1", _message("m1", "t1", "seller"))
    store.add_message("t1", _message("m2", "t1", "me"))
    store.add_message("t2", _message("m3", "t2", "seller", body="latest"))

    assert store.get_unread_count("t1") == 2
    assert store.get_unread_count("t2") == 0
    assert store.get_conversation("t2").last_message_body == "latest"
    assert store.get_total_unread_count() == 2


@pytest.mark.asyncio
async def test_add_message_ignores_duplicate_ids() -> None:
    store = await _store()

    assert store.add_message("t1", _message("m1", "t1", "seller"))
    assert not store.add_message("t1", _message("m1", "t1", "seller"))

    assert len(store.get_messages("t1")) == 1
    assert store.get_unread_count("t1") == 2


@pytest.mark.asyncio
async def test_conversation_flags_and_read_state() -> None:
    store = await _store()

    store.mark_messages_as_read("t1")
    store.archive_conversation("t1")
    store.mute_conversation("t2")

    t1 = store.get_conversation("t1")
    assert t1.unread_count == 0 and t1.last_read_at is not None and t1.is_archived
    assert store.get_conversation("t2").is_muted

    store.unarchive_conversation("t1")
    store.unmute_conversation("t2")
    assert not store.get_conversation("t1").is_archived
    assert not store.get_conversation("t2").is_muted


@pytest.mark.asyncio
async def test_add_conversation_replaces_or_prepends() -> None:
    store = await _store()

    store.add_conversation(Conversation(thread_id="t3"))
    store.add_conversation(Conversation(thread_id="t2", product_title="Garri"))

    assert [c.thread_id for c in store.conversations] == ["t3", "t1", "t2"]
    assert store.get_conversation("t2").product_title == "Garri"

    store.remove_conversation("t3")
    assert store.get_conversation("t3") is None


@pytest.mark.asyncio
async def test_typing_and_reactions() -> None:
    store = await _store()

    store.add_typing_indicator("t1", TypingIndicator(user_id="seller"))
    store.add_typing_indicator("t1", TypingIndicator(user_id="seller"))
    assert store.is_typing("t1", "seller")
    assert len(store.typing_indicators["t1"]) == 1

    store.remove_typing_indicator("t1", "seller")
    assert not store.is_typing("t1", "seller")

    store.add_message_reaction("m1", MessageReaction(emoji="👍", count=1))
    store.add_message_reaction("m1", MessageReaction(emoji="🔥", count=1))
    store.remove_message_reaction("m1", "👍")
    assert [r.emoji for r in store.message_reactions["m1"]] == ["🔥"]


@pytest.mark.asyncio
async def test_message_edits_and_reset() -> None:
    store = await _store()
    store.set_messages("t1", [_message("m1", "t1", "seller"), _message("m2", "t1", "me")])

    store.update_message("t1", "m1", status="read")
    store.remove_message("t1", "m2")

    assert [(m.id, m.status) for m in store.get_messages("t1")] == [("m1", "read")]

    store.set_error("boom")
    store.reset()
    assert store.conversations == [] and store.error is None and store.get_messages("t1") == []
