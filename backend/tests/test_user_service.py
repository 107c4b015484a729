"""
StreetPaws Backend — User Service Tests
=========================================

What we test:
    ✅ Password hashing round-trip; malformed stored hashes fail closed
    ✅ bcrypt work runs in the threadpool, so the event loop stays live
    ✅ Token digests are stable and never the raw token
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from streetpaws.config import settings
from streetpaws.services import user_service as user_service_module
from streetpaws.services.user_service import digest_token, hash_password, verify_password


class TestPasswordHashing:

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        hashed = await hash_password("secret123")

        assert hashed != "secret123"
        assert hashed.startswith("$2")
        assert await verify_password("secret123", hashed) is True
        assert await verify_password("wrong-one", hashed) is False

    @pytest.mark.asyncio
    async def test_malformed_hash_does_not_verify(self):
        assert await verify_password("secret123", "not-a-bcrypt-hash") is False

    @pytest.mark.asyncio
    async def test_bcrypt_runs_in_threadpool(self):
        def run_inline(func, *args):
            return func(*args)

        pool = AsyncMock(side_effect=run_inline)
        with patch.object(user_service_module, "run_in_threadpool", new=pool):
            hashed = await hash_password("secret123")
            assert await verify_password("secret123", hashed) is True

        assert pool.await_count == 2
        assert pool.await_args_list[0].args[1:] == ("secret123",)
        assert pool.await_args_list[1].args[1:] == ("secret123", hashed)

    @pytest.mark.asyncio
    async def test_event_loop_keeps_running_while_hashing(self, monkeypatch):
        # Production work factor: a few hundred ms of CPU per hash
        monkeypatch.setattr(settings, "bcrypt_rounds", 12)
        ticks = 0
        done = asyncio.Event()

        async def ticker():
            nonlocal ticks
            while not done.is_set():
                ticks += 1
                await asyncio.sleep(0.005)

        async def hash_then_stop():
            try:
                return await hash_password("secret123")
            finally:
                done.set()

        _, hashed = await asyncio.gather(ticker(), hash_then_stop())

        assert hashed.startswith("$2")
        assert ticks >= 5


class TestTokenDigest:

    def test_digest_is_stable_sha256(self):
        digest = digest_token("raw-token")

        assert digest == digest_token("raw-token")
        assert digest != digest_token("other-token")
        assert len(digest) == 64
        assert "raw-token" not in digest
