"""Tests for authentication endpoints."""
import pytest

from app.auth.security import create_access_token, create_refresh_token, decode_token
from factories import create_user


@pytest.mark.asyncio
async def test_register_success(client):
    """Test successful user registration."""
    response = await client.post(
        "/api/auth/register",
        json={"name": "  Asha  ", "email": "Asha@Example.com", "password": "TestPass123"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert decode_token(data["access_token"])["email"] == "asha@example.com"
    assert decode_token(data["refresh_token"], token_type="refresh") is not None

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Asha"
    assert "password_hash" not in me.json()


@pytest.mark.asyncio
async def test_register_duplicate_email(client, test_db):
    await create_user(test_db, email="taken@example.com")

    response = await client.post(
        "/api/auth/register",
        json={"name": "Someone", "email": "TAKEN@example.com", "password": "TestPass123"},
    )

    assert response.status_code == 409
    assert "already used" in response.json()["detail"]


@pytest.mark.asyncio
async def test_register_validation(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Someone", "email": "not-an-email", "password": "TestPass123"},
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/auth/register",
        json={"name": "Someone", "email": "short@example.com", "password": "abc"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login(client, test_db):
    await create_user(test_db, email="login@example.com", password="TestPass123")

    response = await client.post(
        "/api/auth/login",
        json={"email": "login@example.com", "password": "TestPass123"},
    )
    assert response.status_code == 200
    assert "access_token" in response.json()

    response = await client.post(
        "/api/auth/login",
        json={"email": "login@example.com", "password": "WrongPass123"},
    )
    assert response.status_code == 401

    response = await client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "TestPass123"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client, test_db):
    user = await create_user(test_db, email="refresh@example.com")
    user_id = user.uuid

    response = await client.post(
        "/api/auth/refresh",
        json={"refresh_token": create_refresh_token(data={"sub": user_id})},
    )
    assert response.status_code == 200
    assert decode_token(response.json()["access_token"])["sub"] == user_id

    # Access tokens cannot be used as refresh tokens
    response = await client.post(
        "/api/auth/refresh",
        json={"refresh_token": create_access_token(data={"sub": user_id})},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_bad_tokens(client, test_db):
    user = await create_user(test_db, email="me@example.com")

    response = await client.get("/api/auth/me")
    assert response.status_code == 401

    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401

    refresh_only = create_refresh_token(data={"sub": user.uuid})
    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh_only}"})
    assert response.status_code == 401
