# tests/v1/test_chats.py
"""Tests for private chat endpoints."""

from fastapi import status


def test_start_private_chat_is_reused(client, alice, bob, alice_headers, bob_headers) -> None:
    """Both participants land in the same conversation."""
    first = client.post("/api/v1/chats/private", json={"username": "bob"}, headers=alice_headers)
    second = client.post("/api/v1/chats/private", json={"username": "alice"}, headers=bob_headers)

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["other_user_id"] == bob.id
    assert second.json()["other_user_id"] == alice.id


def test_start_chat_with_self_or_unknown(client, alice, alice_headers) -> None:
    """Self chats and unknown users are refused."""
    assert client.post("/api/v1/chats/private", json={"username": "alice"}, headers=alice_headers).status_code == status.HTTP_400_BAD_REQUEST
    assert client.post("/api/v1/chats/private", json={"username": "ghost"}, headers=alice_headers).status_code == status.HTTP_404_NOT_FOUND


def test_private_messages_flow(client, alice, bob, alice_headers, bob_headers, broadcaster) -> None:
    """Messages raise the unread count until the recipient opens the chat."""
    chat_id = client.post("/api/v1/chats/private", json={"username": "bob"}, headers=alice_headers).json()["id"]

    sent = client.post(f"/api/v1/chats/private/{chat_id}/messages", json={"message": "Hi Bob"}, headers=alice_headers)
    assert sent.status_code == status.HTTP_201_CREATED
    update = broadcaster.of_type("chatUpdate")[0]
    assert (update["chatId"], update["isPrivate"]) == (chat_id, True)

    chats = client.get("/api/v1/chats/private", headers=bob_headers).json()
    assert [(c["id"], c["unread_count"], c["other_username"]) for c in chats] == [(chat_id, 1, "alice")]

    detail = client.get(f"/api/v1/chats/private/{chat_id}", headers=bob_headers).json()
    assert [m["message"] for m in detail["messages"]] == ["Hi Bob"]
    assert client.get("/api/v1/chats/private", headers=bob_headers).json()[0]["unread_count"] == 0


def test_outsider_cannot_read_chat(client, alice, bob, alice_headers, carol_headers) -> None:
    """Only the two participants can open the conversation."""
    chat_id = client.post("/api/v1/chats/private", json={"username": "bob"}, headers=alice_headers).json()["id"]

    response = client.get(f"/api/v1/chats/private/{chat_id}", headers=carol_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_edit_and_delete_private_message(client, alice, bob, alice_headers, bob_headers) -> None:
    """Only the sender edits; deletion clears the text."""
    chat_id = client.post("/api/v1/chats/private", json={"username": "bob"}, headers=alice_headers).json()["id"]
    message_id = client.post(
        f"/api/v1/chats/private/{chat_id}/messages", json={"message": "draft"}, headers=alice_headers
    ).json()["id"]

    assert client.put(f"/api/v1/chats/private/messages/{message_id}", json={"message": "x"}, headers=bob_headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.put(f"/api/v1/chats/private/messages/{message_id}", json={"message": "done"}, headers=alice_headers).json()["message"] == "done"
    assert client.delete(f"/api/v1/chats/private/messages/{message_id}", headers=alice_headers).status_code == status.HTTP_204_NO_CONTENT

    messages = client.get(f"/api/v1/chats/private/{chat_id}", headers=alice_headers).json()["messages"]
    assert [(m["is_deleted"], m["message"]) for m in messages] == [(True, "")]


def test_share_post_into_private_chat(client, alice_post, alice, bob, alice_headers, bob_headers, broadcaster) -> None:
    """A shared post arrives as a post card with an absolute link."""
    chat_id = client.post("/api/v1/chats/private", json={"username": "bob"}, headers=alice_headers).json()["id"]

    response = client.post(
        "/api/v1/chats/share",
        json={"post_id": alice_post.id, "chat_id": chat_id, "is_private": True},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["is_private"] is True
    messages = client.get(f"/api/v1/chats/private/{chat_id}", headers=bob_headers).json()["messages"]
    assert messages[0]["message"] == (
        f"[POST_SHARE]|alice|{alice_post.id}|Hello from alice|http://test/Collaboration#post-{alice_post.id}"
    )
    assert broadcaster.of_type("chatUpdate")[0]["isPrivate"] is True


def test_share_into_foreign_group(client, alice_post, make_group, alice, bob_headers) -> None:
    """Only members can share into a group."""
    group = make_group(alice)

    response = client.post(
        "/api/v1/chats/share",
        json={"post_id": alice_post.id, "chat_id": group.id, "is_private": False},
        headers=bob_headers,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
