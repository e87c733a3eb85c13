"""
Tests for bearer-token resolution of the user id.
"""

from datetime import timedelta

import jwt
import pytest
from httpx import AsyncClient

from app.core.config import get_settings
from app.core.security import create_access_token


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient):
    response = await client.get(
        "/api/v1/booking", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, eligible_user):
    token = create_access_token(data={"sub": str(eligible_user.id)}, expires_delta=timedelta(minutes=-1))
    response = await client.get("/api/v1/booking", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_key(client: AsyncClient, eligible_user):
    token = jwt.encode({"sub": str(eligible_user.id)}, "another-signing-key-that-is-not-ours", algorithm="HS256")
    response = await client.get("/api/v1/booking", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_with_non_numeric_subject(client: AsyncClient):
    token = create_access_token(data={"sub": "alice"})
    response = await client.get("/api/v1/booking", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_access_token_carries_subject():
    settings = get_settings()
    token = create_access_token(data={"sub": "42"})
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["sub"] == "42"
    assert "exp" in payload
