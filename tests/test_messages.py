import pytest

from core.errors import Forbidden, InvalidInput, NotFound, RateLimited, Unauthorized
from services import matches, messages

pytestmark = pytest.mark.anyio


@pytest.fixture
async def conversation(db, make_user):
    alice = await make_user(username="alice")
    bob = await make_user(username="bob")
    match = await matches.propose(db, alice.id, bob.id)
    await matches.accept(db, match.id, bob.id)
    return match, alice, bob


async def test_send_and_list_messages(db, conversation, frozen_clock):
    match, alice, bob = conversation
    await messages.send_message(db, match.id, alice.id, "  hi bob  ")
    frozen_clock.advance(seconds=5)
    await messages.send_message(db, match.id, bob.id, "hi alice")

    page = await messages.list_messages(db, match.id, alice.id)

    assert [m.content for m in page.messages] == ["hi bob", "hi alice"]
    assert not page.has_more
    incoming = page.messages[1]
    assert incoming.read_at == frozen_clock.now
    assert page.messages[0].read_at is None


async def test_pending_and_declined_matches_are_closed(db, make_user):
    alice = await make_user()
    bob = await make_user()
    match = await matches.propose(db, alice.id, bob.id)

    with pytest.raises(Forbidden):
        await messages.send_message(db, match.id, alice.id, "too early")

    await matches.decline(db, match.id, bob.id)
    with pytest.raises(Forbidden):
        await messages.send_message(db, match.id, alice.id, "please?")


async def test_send_validation(db, conversation, make_user):
    match, alice, _ = conversation
    outsider = await make_user()

    with pytest.raises(InvalidInput):
        await messages.send_message(db, match.id, alice.id, "   ")
    with pytest.raises(InvalidInput):
        await messages.send_message(db, match.id, alice.id, "x" * 1001)
    with pytest.raises(Unauthorized):
        await messages.send_message(db, match.id, outsider.id, "hello")
    with pytest.raises(NotFound):
        await messages.send_message(db, 31337, alice.id, "hello")


async def test_sent_messages_are_always_text(db, conversation):
    match, alice, _ = conversation

    sent = await messages.send_message(db, match.id, alice.id, messages.DELETED_PLACEHOLDER)

    assert sent.message_type == "text"


async def test_sender_is_rate_limited_per_conversation(db, conversation, frozen_clock):
    match, alice, bob = conversation
    for i in range(10):
        await messages.send_message(db, match.id, alice.id, f"message {i}")

    with pytest.raises(RateLimited):
        await messages.send_message(db, match.id, alice.id, "one more")

    # другой отправитель считается отдельно
    await messages.send_message(db, match.id, bob.id, "slow down")

    frozen_clock.advance(seconds=61)
    sent = await messages.send_message(db, match.id, alice.id, "sorry")
    assert sent.content == "sorry"


async def test_delete_within_window(db, conversation, frozen_clock):
    match, alice, bob = conversation
    message = await messages.send_message(db, match.id, alice.id, "oops")

    with pytest.raises(NotFound):
        await messages.delete_message(db, message.id, bob.id)

    frozen_clock.advance(minutes=4)
    deleted = await messages.delete_message(db, message.id, alice.id)

    assert deleted.content == messages.DELETED_PLACEHOLDER
    assert deleted.message_type == "system"


async def test_delete_after_window_is_forbidden(db, conversation, frozen_clock):
    match, alice, _ = conversation
    message = await messages.send_message(db, match.id, alice.id, "too late")

    frozen_clock.advance(minutes=6)

    with pytest.raises(Forbidden):
        await messages.delete_message(db, message.id, alice.id)


async def test_mark_read_counts_only_incoming(db, conversation):
    match, alice, bob = conversation
    await messages.send_message(db, match.id, bob.id, "one")
    await messages.send_message(db, match.id, bob.id, "two")
    await messages.send_message(db, match.id, alice.id, "mine")

    assert await messages.mark_read(db, match.id, alice.id) == 2
    assert await messages.mark_read(db, match.id, alice.id) == 0


async def test_conversations_and_stats(db, conversation, make_user, frozen_clock):
    match, alice, bob = conversation
    carol = await make_user(username="carol")
    other = await matches.propose(db, carol.id, alice.id)
    await matches.accept(db, other.id, alice.id)

    await messages.send_message(db, match.id, bob.id, "hey")
    frozen_clock.advance(minutes=1)
    await messages.send_message(db, other.id, alice.id, "hello carol")

    conversations = await messages.list_conversations(db, alice.id)

    assert [c.partner.username for c in conversations] == ["carol", "bob"]
    assert conversations[0].last_message.content == "hello carol"
    assert conversations[0].unread_count == 0
    assert conversations[1].unread_count == 1

    stats = await messages.message_stats(db, alice.id)
    assert stats == {
        "active_conversations": 2,
        "total_messages_sent": 1,
        "total_messages_received": 1,
        "unread_messages": 1,
    }
