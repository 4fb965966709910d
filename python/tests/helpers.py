"""Test helpers for authentication and common test operations.

Provides:
- Session token creation for test authentication
- Header generation for test requests
"""

from sqlalchemy.orm import Session

from audioshare.stores.sessions import create_session


def auth_headers(session: Session, user_id: int) -> dict[str, str]:
    """Open a session for the user and return a bearer Authorization header.

    Opening a session replaces the user's previous token, so call this once
    per user per test.
    """
    token = create_session(session, user_id)
    return {"Authorization": f"Bearer {token}"}


def list_tracks(client, headers: dict[str, str], **params) -> dict:
    """GET /audio/list and return the JSON body, asserting 200."""
    response = client.get("/audio/list", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def shared_to_names(record: dict) -> list[str]:
    """Grantee display names of a listed record, in response order."""
    return [grantee["name"] for grantee in record["shared_to"]]
