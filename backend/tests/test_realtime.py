"""
StreetPaws Backend — Real-time Tests
======================================

What we test:
    ✅ ChannelHub membership bookkeeping (join / leave / disconnect)
    ✅ Broadcast reaches members only; a failing socket is dropped
    ✅ WS /ws protocol: acks, error frames, connection survives bad input
    ✅ API writes push new-comment / cheer-update to subscribers
    ✅ A broken notifier never fails the write

Fake sockets stand in for starlette WebSockets at the hub level; the WS
protocol itself is exercised through starlette's TestClient.
"""

from typing import Any, List
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from streetpaws.main import create_app
from streetpaws.realtime.hub import CHEER_UPDATE, NEW_COMMENT, ChannelHub, hub, pet_channel
from streetpaws.schemas.pet import PetCreate
from streetpaws.schemas.user import RegisterRequest
from streetpaws.services.pet_service import PetService
from streetpaws.services.user_service import user_service

from conftest import PET_PAYLOAD, bearer


class FakeSocket:
    """Records every frame sent to it."""

    def __init__(self) -> None:
        self.frames: List[Any] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        self.frames.append(data)


class BrokenSocket:
    async def send_json(self, data: Any, mode: str = "text") -> None:
        raise RuntimeError("socket closed")


# ══════════════════════════════════════════════════════════════════════════
# ChannelHub
# ══════════════════════════════════════════════════════════════════════════

class TestChannelHub:

    def setup_method(self):
        self.hub = ChannelHub()
        self.pet_a = str(uuid4())
        self.pet_b = str(uuid4())

    def test_channel_name(self):
        assert pet_channel("abc") == "pet-abc"

    def test_join_and_leave(self):
        socket = FakeSocket()

        assert self.hub.join(socket, self.pet_a) == f"pet-{self.pet_a}"
        self.hub.join(socket, self.pet_a)
        self.hub.join(socket, self.pet_b)

        assert self.hub.members(self.pet_a) == 1
        assert self.hub.members(self.pet_b) == 1
        assert self.hub.connection_count == 1

        self.hub.leave(socket, self.pet_a)
        assert self.hub.members(self.pet_a) == 0
        assert self.hub.connection_count == 1

        self.hub.leave(socket, self.pet_b)
        assert self.hub.connection_count == 0

    def test_leave_without_join_is_harmless(self):
        self.hub.leave(FakeSocket(), self.pet_a)
        assert self.hub.members(self.pet_a) == 0

    def test_disconnect_leaves_every_channel(self):
        socket, other = FakeSocket(), FakeSocket()
        self.hub.join(socket, self.pet_a)
        self.hub.join(socket, self.pet_b)
        self.hub.join(other, self.pet_a)

        self.hub.disconnect(socket)

        assert self.hub.members(self.pet_a) == 1
        assert self.hub.members(self.pet_b) == 0
        assert self.hub.connection_count == 1

    @pytest.mark.asyncio
    async def test_broadcast_reaches_channel_members_only(self):
        watcher, bystander = FakeSocket(), FakeSocket()
        self.hub.join(watcher, self.pet_a)
        self.hub.join(bystander, self.pet_b)

        delivered = await self.hub.broadcast(self.pet_a, NEW_COMMENT, {"petId": self.pet_a})

        assert delivered == 1
        assert watcher.frames == [{"event": NEW_COMMENT, "data": {"petId": self.pet_a}}]
        assert bystander.frames == []

    @pytest.mark.asyncio
    async def test_broadcast_to_empty_channel(self):
        assert await self.hub.broadcast(self.pet_a, CHEER_UPDATE, {}) == 0

    @pytest.mark.asyncio
    async def test_failing_socket_is_dropped(self):
        healthy, broken = FakeSocket(), BrokenSocket()
        self.hub.join(healthy, self.pet_a)
        self.hub.join(broken, self.pet_a)
        self.hub.join(broken, self.pet_b)

        delivered = await self.hub.broadcast(self.pet_a, CHEER_UPDATE, {"cheersCount": 1})

        assert delivered == 1
        assert len(healthy.frames) == 1
        assert self.hub.members(self.pet_a) == 1
        assert self.hub.members(self.pet_b) == 0


# ══════════════════════════════════════════════════════════════════════════
# WebSocket Protocol
# ══════════════════════════════════════════════════════════════════════════

class TestWebSocketEndpoint:

    def setup_method(self):
        self.client = TestClient(create_app())

    def test_join_and_leave_are_acknowledged(self):
        pet_id = str(uuid4())

        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "join", "petId": pet_id.upper()})
            assert ws.receive_json() == {"event": "joined", "data": {"petId": pet_id}}
            assert hub.members(pet_id) == 1

            ws.send_json({"action": "leave", "petId": pet_id})
            assert ws.receive_json() == {"event": "left", "data": {"petId": pet_id}}
            assert hub.members(pet_id) == 0

    def test_bad_frames_get_errors_and_connection_stays_open(self):
        pet_id = str(uuid4())

        with self.client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert ws.receive_json()["event"] == "error"

            ws.send_json(["join", pet_id])
            assert ws.receive_json()["event"] == "error"

            ws.send_json({"action": "subscribe", "petId": pet_id})
            error = ws.receive_json()
            assert error["event"] == "error"
            assert "subscribe" in error["data"]["message"]

            ws.send_json({"action": "join", "petId": "42"})
            assert ws.receive_json() == {
                "event": "error",
                "data": {"message": "petId must be a pet id"},
            }

            ws.send_json({"action": "join", "petId": pet_id})
            assert ws.receive_json()["event"] == "joined"

    def test_disconnect_leaves_channels(self):
        pet_id = str(uuid4())

        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "join", "petId": pet_id})
            ws.receive_json()

        assert hub.members(pet_id) == 0


# ══════════════════════════════════════════════════════════════════════════
# API → Subscribers
# ══════════════════════════════════════════════════════════════════════════

class TestLiveUpdates:

    @pytest.mark.asyncio
    async def test_comment_and_cheer_reach_subscribers(self, client, register_user, create_pet):
        _, token = await register_user("yuki")
        pet = await create_pet(token)
        watcher = FakeSocket()
        hub.join(watcher, pet["id"])

        try:
            await client.post(
                f"/api/pets/{pet['id']}/comments", json={"text": "On my way"}, headers=bearer(token)
            )
            await client.post(f"/api/pets/{pet['id']}/cheer", headers=bearer(token))
        finally:
            hub.disconnect(watcher)

        assert [frame["event"] for frame in watcher.frames] == [NEW_COMMENT, CHEER_UPDATE]
        comment_frame, cheer_frame = watcher.frames
        assert comment_frame["data"]["comment"]["text"] == "On my way"
        assert cheer_frame["data"] == {"petId": pet["id"], "cheersCount": 1, "cheered": True}

    @pytest.mark.asyncio
    async def test_comment_removal_is_not_broadcast(self, client, register_user, create_pet):
        _, token = await register_user("zane")
        pet = await create_pet(token)
        comment = (
            await client.post(
                f"/api/pets/{pet['id']}/comments", json={"text": "Oops"}, headers=bearer(token)
            )
        ).json()["data"]
        watcher = FakeSocket()
        hub.join(watcher, pet["id"])

        try:
            response = await client.delete(
                f"/api/pets/comments/{comment['id']}", headers=bearer(token)
            )
        finally:
            hub.disconnect(watcher)

        assert response.status_code == 200
        assert watcher.frames == []


class TestBrokenNotifier:

    def setup_method(self):
        notifier = ChannelHub()
        notifier.broadcast = AsyncMock(side_effect=RuntimeError("push backend down"))
        self.notifier = notifier
        self.service = PetService(notifier)

    @pytest.mark.asyncio
    async def test_writes_survive_broadcast_failure(self, db_session):
        user, _ = await user_service.register(
            db_session,
            RegisterRequest(username="ada", email="ada@example.com", password="secret123"),
        )
        pet = await self.service.create_pet(db_session, PetCreate.model_validate(PET_PAYLOAD), user)

        comment = await self.service.add_comment(db_session, pet.id, "Still saved", user)
        cheer = await self.service.toggle_cheer(db_session, pet.id, user)

        assert comment.text == "Still saved"
        assert cheer.cheered is True and cheer.cheers_count == 1
        assert self.notifier.broadcast.await_count == 2

        stored = await self.service.get_pet(db_session, pet.id)
        assert [c.text for c in stored.comments] == ["Still saved"]
        assert stored.cheers_count == 1
