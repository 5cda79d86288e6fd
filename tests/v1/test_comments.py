# tests/v1/test_comments.py
"""Tests for comment endpoints."""

from fastapi import status


def test_add_comment_and_reply(client, alice_post, alice_headers, bob_headers) -> None:
    """Replies nest under their parent in the listing."""
    top = client.post(
        "/api/v1/comments/",
        json={"post_id": alice_post.id, "content": "First"},
        headers=bob_headers,
    )
    assert top.status_code == status.HTTP_201_CREATED
    top_id = top.json()["id"]

    reply = client.post(
        "/api/v1/comments/",
        json={"post_id": alice_post.id, "content": "Thanks", "parent_comment_id": top_id},
        headers=alice_headers,
    )
    assert reply.status_code == status.HTTP_201_CREATED
    assert reply.json()["parent_id"] == top_id

    tree = client.get(f"/api/v1/comments/post/{alice_post.id}", headers=bob_headers).json()
    assert [node["id"] for node in tree] == [top_id]
    assert [node["content"] for node in tree[0]["replies"]] == ["Thanks"]
    assert tree[0]["user"] == "bob"


def test_reply_to_unknown_parent(client, alice_post, bob_headers) -> None:
    """A missing parent comment returns 404."""
    response = client.post(
        "/api/v1/comments/",
        json={"post_id": alice_post.id, "content": "Lost", "parent_comment_id": 4242},
        headers=bob_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_edit_comment(client, alice_post, make_comment, bob, bob_headers, alice_headers) -> None:
    """Only the author can edit a comment."""
    comment = make_comment(alice_post, bob, "draft")

    forbidden = client.put(f"/api/v1/comments/{comment.id}", json={"content": "x"}, headers=alice_headers)
    allowed = client.put(f"/api/v1/comments/{comment.id}", json={"content": "final"}, headers=bob_headers)

    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert allowed.json() == {"success": True, "content": "final"}


def test_delete_comment_cascades(client, alice_post, make_comment, alice, bob, alice_headers, broadcaster) -> None:
    """Deleting a comment removes its replies too."""
    top = make_comment(alice_post, alice, "top")
    reply = make_comment(alice_post, bob, "reply", parent=top)
    nested = make_comment(alice_post, alice, "nested", parent=reply)

    response = client.delete(f"/api/v1/comments/{top.id}", headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "removed_ids": [top.id, reply.id, nested.id]}
    assert client.get(f"/api/v1/comments/post/{alice_post.id}", headers=alice_headers).json() == []
    assert broadcaster.of_type("commentDeleted")[0]["isTopLevel"] is True
