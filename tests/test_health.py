# tests/test_health.py
from fastapi import status


def test_health(client) -> None:
    """The health endpoint needs no authentication."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_describes_service(client) -> None:
    """The root endpoint names the service and its docs."""
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["docs"] == "/docs"
