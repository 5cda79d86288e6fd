# tests/services/test_chat.py
"""Group and private chat messages."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ozark_collab.core.errors import Forbidden, NotFound, ValidationError
from ozark_collab.models import ChatGroup, ChatMessage, Notification, PrivateChat, PrivateMessage
from ozark_collab.services.chat import ChatService, post_share_body
from ozark_collab.services.notifications import message_preview


def _notes(db_session, recipient_id):
    return list(
        db_session.scalars(
            select(Notification).where(Notification.recipient_id == recipient_id).order_by(Notification.id)
        )
    )


def test_message_preview_shortens_long_text() -> None:
    assert message_preview("short") == "short"
    assert message_preview("x" * 50) == "x" * 50
    assert message_preview("y" * 51) == "y" * 47 + "..."
    assert message_preview("   ") == "Sent an attachment"


@pytest.mark.asyncio
async def test_group_message_notifies_other_members(db_session, broadcaster, make_group, alice, bob, carol) -> None:
    group = make_group(alice, [(alice, None), (bob, None), (carol, None)], name="Chemistry")

    message = await ChatService(db_session, broadcaster).post_message(group.id, alice, "Lab at 3")

    assert message.message == "Lab at 3"
    assert _notes(db_session, alice.id) == []
    for member in (bob, carol):
        notes = _notes(db_session, member.id)
        assert [(n.title, n.message, n.action_url) for n in notes] == [
            ("New Message in Chemistry", "Lab at 3", f"/Collaboration/Details/{group.id}")
        ]
    updates = broadcaster.of_type("chatUpdate")
    assert len(updates) == 1
    assert updates[0]["chatId"] == group.id
    assert updates[0]["isPrivate"] is False


@pytest.mark.asyncio
async def test_posting_bumps_group_activity(db_session, broadcaster, make_group, alice) -> None:
    quiet = make_group(alice, name="Quiet")
    busy = make_group(alice, name="Busy")
    service = ChatService(db_session, broadcaster)

    await service.post_message(busy.id, alice, "first")
    await service.post_message(quiet.id, alice, "latest")

    names = [g.name for g, _ in service.groups.list_groups(alice)]
    assert names == ["Quiet", "Busy"]


@pytest.mark.asyncio
async def test_attachment_only_message(db_session, broadcaster, make_group, alice, bob) -> None:
    group = make_group(alice, [(alice, None), (bob, None)])

    await ChatService(db_session, broadcaster).post_message(
        group.id, alice, "", attachment_url="/files/notes.pdf", attachment_name="notes.pdf", attachment_size=12
    )

    assert [n.message for n in _notes(db_session, bob.id)] == ["Sent an attachment"]


@pytest.mark.asyncio
async def test_empty_message_rejected(db_session, broadcaster, make_group, alice) -> None:
    group = make_group(alice)

    with pytest.raises(ValidationError):
        await ChatService(db_session, broadcaster).post_message(group.id, alice, "  ")


@pytest.mark.asyncio
async def test_non_member_cannot_post(db_session, broadcaster, make_group, alice, bob) -> None:
    group = make_group(alice)

    with pytest.raises(Forbidden):
        await ChatService(db_session, broadcaster).post_message(group.id, bob, "hi")
    assert broadcaster.messages == []


@pytest.mark.asyncio
async def test_edit_and_soft_delete(db_session, broadcaster, make_group, alice, bob, admin) -> None:
    group = make_group(alice, [(alice, None), (bob, None)])
    service = ChatService(db_session, broadcaster)
    message = await service.post_message(group.id, alice, "typo", attachment_url="/files/a.png")

    with pytest.raises(Forbidden):
        service.edit_message(message.id, bob, "fixed")
    assert service.edit_message(message.id, alice, "fixed").last_edited_date is not None

    with pytest.raises(Forbidden):
        service.delete_message(message.id, bob)
    deleted = service.delete_message(message.id, admin)
    assert deleted.is_deleted is True
    assert deleted.message == ""
    assert deleted.attachment_url is None
    assert [m.id for m in service.group_messages(group.id)] == [message.id]

    with pytest.raises(NotFound):
        service.edit_message(message.id, alice, "again")


def test_private_chat_is_reused_for_the_pair(db_session, broadcaster, alice, bob) -> None:
    service = ChatService(db_session, broadcaster)

    first = service.start_private_chat(alice, "bob")
    second = service.start_private_chat(bob, "alice")

    assert first.id == second.id
    assert db_session.scalars(select(PrivateChat)).all() == [first]


def test_private_chat_targets(db_session, broadcaster, alice) -> None:
    service = ChatService(db_session, broadcaster)

    with pytest.raises(NotFound):
        service.start_private_chat(alice, "ghost")
    with pytest.raises(ValidationError):
        service.start_private_chat(alice, "alice")


@pytest.mark.asyncio
async def test_private_message_notifies_and_unread_clears(db_session, broadcaster, alice, bob, carol) -> None:
    service = ChatService(db_session, broadcaster)
    chat = service.start_private_chat(alice, "bob")

    await service.post_private_message(chat.id, alice, "hello bob")
    await service.post_private_message(chat.id, alice, "are you there?")

    notes = _notes(db_session, bob.id)
    assert [n.title for n in notes] == ["Private Message from alice"] * 2
    assert notes[0].action_url == f"/Collaboration/PrivateDetails/{chat.id}"
    assert service.list_private_chats(bob) == [(chat, 2)]
    assert broadcaster.of_type("chatUpdate")[-1]["isPrivate"] is True

    opened, messages = service.open_private_chat(chat.id, bob)
    assert opened.id == chat.id
    assert [m.message for m in messages] == ["hello bob", "are you there?"]
    assert service.list_private_chats(bob) == [(chat, 0)]

    with pytest.raises(Forbidden):
        service.open_private_chat(chat.id, carol)


@pytest.mark.asyncio
async def test_private_message_edit_and_delete(db_session, broadcaster, alice, bob) -> None:
    service = ChatService(db_session, broadcaster)
    chat = service.start_private_chat(alice, "bob")
    message = await service.post_private_message(chat.id, alice, "draft")

    with pytest.raises(Forbidden):
        service.edit_private_message(message.id, bob, "hacked")
    assert service.edit_private_message(message.id, alice, "final").message == "final"

    deleted = service.delete_private_message(message.id, alice)
    assert deleted.is_deleted is True
    assert deleted.message == ""


def test_group_lookup_missing(db_session, broadcaster, alice) -> None:
    with pytest.raises(NotFound):
        ChatService(db_session, broadcaster).groups.open_group(12345, alice)
    assert db_session.scalars(select(ChatGroup)).all() == []


def test_private_chat_pair_is_stored_ordered(db_session, broadcaster, alice, bob) -> None:
    chat = ChatService(db_session, broadcaster).start_private_chat(bob, "alice")

    assert (chat.user1_id, chat.user2_id) == tuple(sorted((alice.id, bob.id)))


def test_store_rejects_a_second_chat_for_the_pair(db_session, alice, bob) -> None:
    low, high = sorted((alice.id, bob.id))
    db_session.add(PrivateChat(user1_id=low, user2_id=high))
    db_session.commit()

    db_session.add(PrivateChat(user1_id=low, user2_id=high))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_concurrent_start_returns_the_chat_created_first(db_session, broadcaster, alice, bob, monkeypatch) -> None:
    service = ChatService(db_session, broadcaster)
    existing = service.start_private_chat(alice, "bob")
    real_pair = service._pair
    lookups = []

    def stale_pair(user1_id, user2_id):
        # The first lookup runs before the other request's insert is visible.
        lookups.append((user1_id, user2_id))
        return None if len(lookups) == 1 else real_pair(user1_id, user2_id)

    monkeypatch.setattr(service, "_pair", stale_pair)

    chat = service.start_private_chat(bob, "alice")

    assert chat.id == existing.id
    assert len(lookups) == 2
    assert [c.id for c in db_session.scalars(select(PrivateChat))] == [existing.id]


def test_post_share_body_truncates_long_content() -> None:
    assert post_share_body("alice", 7, "short", "/p") == "[POST_SHARE]|alice|7|short|/p"
    assert post_share_body("alice", 7, "x" * 100, "/p") == f"[POST_SHARE]|alice|7|{'x' * 100}|/p"
    assert post_share_body("alice", 7, "y" * 101, "/p") == f"[POST_SHARE]|alice|7|{'y' * 97}...|/p"
    assert post_share_body("alice", 7, None, "/p") == "[POST_SHARE]|alice|7||/p"


@pytest.mark.asyncio
async def test_share_post_into_group(db_session, broadcaster, make_group, alice_post, alice, bob, carol) -> None:
    group = make_group(bob, [(bob, None), (carol, None)], name="Readers")

    message = await ChatService(db_session, broadcaster).share_to_chat(
        alice_post.id, group.id, bob, is_private=False, base_url="https://lms.example/"
    )

    assert isinstance(message, ChatMessage)
    assert message.message == (
        f"[POST_SHARE]|alice|{alice_post.id}|Hello from alice|https://lms.example/Collaboration#post-{alice_post.id}"
    )
    assert db_session.get(ChatGroup, group.id).last_activity_date == message.sent_date
    assert _notes(db_session, bob.id) == []
    assert [(n.title, n.message) for n in _notes(db_session, carol.id)] == [
        ("Post shared in Readers", "Shared a post link in the group")
    ]
    assert broadcaster.of_type("chatUpdate")[0]["chatId"] == group.id


@pytest.mark.asyncio
async def test_share_post_into_private_chat(db_session, broadcaster, alice_post, alice, bob) -> None:
    service = ChatService(db_session, broadcaster)
    chat = service.start_private_chat(alice, "bob")

    message = await service.share_to_chat(alice_post.id, chat.id, alice, is_private=True)

    assert isinstance(message, PrivateMessage)
    assert message.message.startswith(f"[POST_SHARE]|alice|{alice_post.id}|")
    assert message.message.endswith(f"|/Collaboration#post-{alice_post.id}")
    assert [(n.title, n.action_url) for n in _notes(db_session, bob.id)] == [
        ("Shared a post with you", f"/Collaboration/PrivateDetails/{chat.id}")
    ]
    assert broadcaster.of_type("chatUpdate")[0]["isPrivate"] is True


@pytest.mark.asyncio
async def test_share_requires_membership_and_a_post(
    db_session, broadcaster, make_group, alice_post, alice, bob, carol
) -> None:
    group = make_group(alice)
    service = ChatService(db_session, broadcaster)
    chat = service.start_private_chat(alice, "bob")

    with pytest.raises(Forbidden):
        await service.share_to_chat(alice_post.id, group.id, bob, is_private=False)
    with pytest.raises(Forbidden):
        await service.share_to_chat(alice_post.id, chat.id, carol, is_private=True)
    with pytest.raises(NotFound, match="Post not found"):
        await service.share_to_chat(9999, group.id, alice, is_private=False)
    with pytest.raises(NotFound):
        await service.share_to_chat(alice_post.id, 9999, alice, is_private=False)

    assert db_session.scalars(select(ChatMessage)).all() == []
    assert broadcaster.messages == []
