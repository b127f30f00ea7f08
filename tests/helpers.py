"""Test helpers shared across modules."""

from common.security import create_token


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_token({'sub': str(user.id)})}"}
