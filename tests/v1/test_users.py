# tests/v1/test_users.py
"""Tests for user search endpoints."""

from fastapi import status


def test_search_users(client, make_user, alice_headers) -> None:
    """Search matches part of a username regardless of case."""
    make_user("Bobby", display_name="Bob B.")
    make_user("carol")

    response = client.get("/api/v1/users/search", params={"query": "bOb"}, headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    assert [(u["username"], u["avatar_url"]) for u in response.json()] == [("Bobby", None)]


def test_search_with_blank_query(client, alice_headers) -> None:
    """A blank query returns an empty list."""
    response = client.get("/api/v1/users/search", params={"query": " "}, headers=alice_headers)
    assert response.json() == []


def test_search_requires_authentication(client) -> None:
    """Anonymous callers cannot enumerate users."""
    response = client.get("/api/v1/users/search", params={"query": "a"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
