"""
StreetPaws Backend — Auth API Tests
=====================================

What we test:
    ✅ Register returns user + token; duplicates conflict
    ✅ Login by email or username; bad credentials; deactivated accounts
    ✅ Bearer header and token cookie both authenticate
    ✅ Logout revokes the token and clears the cookie
    ✅ Detail and password changes (token rotation)
    ✅ Expired tokens are rejected
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from streetpaws.models.auth_token import AuthToken
from streetpaws.models.user import User

from conftest import bearer


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_private_user_and_token(self, client):
        response = await client.post(
            "/api/auth/register",
            json={
                "username": "newbie",
                "email": "Newbie@Example.com",
                "password": "hunter22",
                "firstName": "New",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["token"]
        user = data["user"]
        assert user["username"] == "newbie"
        assert user["email"] == "newbie@example.com"
        assert user["role"] == "user"
        assert user["profile"]["firstName"] == "New"
        assert "password" not in user and "passwordHash" not in user

    @pytest.mark.asyncio
    async def test_duplicate_username_or_email(self, client, register_user):
        await register_user("taken", email="taken@example.com")

        same_name = await client.post(
            "/api/auth/register",
            json={"username": "taken", "email": "other@example.com", "password": "secret123"},
        )
        same_email = await client.post(
            "/api/auth/register",
            json={"username": "fresh", "email": "TAKEN@example.com", "password": "secret123"},
        )

        assert same_name.status_code == 409
        assert same_name.json()["error"] == "conflict"
        assert same_email.status_code == 409

    @pytest.mark.asyncio
    async def test_register_validation(self, client):
        short_password = await client.post(
            "/api/auth/register",
            json={"username": "abc", "email": "abc@example.com", "password": "123"},
        )
        bad_email = await client.post(
            "/api/auth/register",
            json={"username": "abc", "email": "not-an-email", "password": "secret123"},
        )
        assert short_password.status_code == 400
        assert bad_email.status_code == 400


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_with_email_or_username(self, client, register_user):
        await register_user("carol", email="carol@example.com", password="pa55word")

        by_email = await client.post(
            "/api/auth/login", json={"identifier": "carol@example.com", "password": "pa55word"}
        )
        by_name = await client.post(
            "/api/auth/login", json={"identifier": "carol", "password": "pa55word"}
        )

        assert by_email.status_code == 200
        assert by_name.status_code == 200
        assert by_name.json()["data"]["user"]["lastLogin"] is not None
        assert by_email.json()["data"]["token"] != by_name.json()["data"]["token"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user(self, client, register_user):
        await register_user("dave", password="correct1")

        wrong = await client.post(
            "/api/auth/login", json={"identifier": "dave", "password": "incorrect"}
        )
        unknown = await client.post(
            "/api/auth/login", json={"identifier": "nobody", "password": "whatever"}
        )

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_deactivated_account(self, client, register_user, session_factory):
        _, token = await register_user("erin", password="secret123")
        async with session_factory() as session:
            await session.execute(
                update(User).where(User.username == "erin").values(is_active=False)
            )
            await session.commit()

        login = await client.post(
            "/api/auth/login", json={"identifier": "erin", "password": "secret123"}
        )
        me = await client.get("/api/auth/me", headers=bearer(token))

        assert login.status_code == 401
        assert me.status_code == 401


class TestSession:

    @pytest.mark.asyncio
    async def test_me_with_header_and_cookie(self, client, register_user):
        user, token = await register_user("frank")

        by_header = await client.get("/api/auth/me", headers=bearer(token))
        by_cookie = await client.get("/api/auth/me", headers={"Cookie": f"token={token}"})

        assert by_header.json()["data"]["id"] == user["id"]
        assert by_cookie.json()["data"]["id"] == user["id"]

    @pytest.mark.asyncio
    async def test_me_without_or_with_bad_token(self, client):
        assert (await client.get("/api/auth/me")).status_code == 401
        assert (await client.get("/api/auth/me", headers=bearer("bogus"))).status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, register_user, session_factory):
        _, token = await register_user("gina")
        async with session_factory() as session:
            await session.execute(
                update(AuthToken).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
            )
            await session.commit()

        response = await client.get("/api/auth/me", headers=bearer(token))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, client, register_user):
        _, token = await register_user("hank")

        response = await client.post("/api/auth/logout", headers=bearer(token))

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}
        assert "max-age=0" in response.headers["set-cookie"].lower()
        assert (await client.get("/api/auth/me", headers=bearer(token))).status_code == 401


class TestAccountChanges:

    @pytest.mark.asyncio
    async def test_update_details(self, client, register_user):
        _, token = await register_user("ivy")

        response = await client.put(
            "/api/auth/updatedetails",
            json={"username": "ivy2", "email": "IVY2@example.com", "bio": "Cat person"},
            headers=bearer(token),
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["username"] == "ivy2"
        assert data["email"] == "ivy2@example.com"
        assert data["profile"]["bio"] == "Cat person"

    @pytest.mark.asyncio
    async def test_update_details_to_taken_username(self, client, register_user):
        await register_user("jack")
        _, token = await register_user("jill")

        response = await client.put(
            "/api/auth/updatedetails", json={"username": "jack"}, headers=bearer(token)
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_update_details_rejects_avatar(self, client, register_user):
        _, token = await register_user("kate")
        response = await client.put(
            "/api/auth/updatedetails", json={"avatar": "x.png"}, headers=bearer(token)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_password_rotates_tokens(self, client, register_user):
        _, token = await register_user("liam", password="oldpass1")

        wrong = await client.put(
            "/api/auth/updatepassword",
            json={"currentPassword": "nope", "newPassword": "newpass1"},
            headers=bearer(token),
        )
        assert wrong.status_code == 401
        assert wrong.json()["message"] == "Password is incorrect"

        response = await client.put(
            "/api/auth/updatepassword",
            json={"currentPassword": "oldpass1", "newPassword": "newpass1"},
            headers=bearer(token),
        )
        assert response.status_code == 200
        new_token = response.json()["data"]["token"]

        assert (await client.get("/api/auth/me", headers=bearer(token))).status_code == 401
        assert (await client.get("/api/auth/me", headers=bearer(new_token))).status_code == 200

        old_login = await client.post(
            "/api/auth/login", json={"identifier": "liam", "password": "oldpass1"}
        )
        new_login = await client.post(
            "/api/auth/login", json={"identifier": "liam", "password": "newpass1"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200
