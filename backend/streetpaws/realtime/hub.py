"""
StreetPaws Backend — Real-time Channel Hub
============================================

What:  In-process registry of WebSocket connections grouped into per-pet
       channels, plus best-effort broadcast to a channel.
Why:   Clients viewing a pet receive new comments and cheer counts live
       without polling.
How:   channel name → set of WebSocket connections. A connection may sit in
       any number of channels. Broadcast sends one JSON frame to each
       current member.

Delivery semantics:
    - At-most-once, fire-and-forget: nothing is persisted or replayed, so a
      client that joins after a broadcast never sees it.
    - A failed send removes that connection from every channel and is
      logged; the remaining members still receive the event.
    - broadcast() never raises. The database is the source of truth and a
      client can always re-fetch.

Scope:
    One hub per process. With several uvicorn workers each worker only
    reaches its own sockets.

Frame format (server → client):
    {"event": "new-comment",  "data": {"petId": ..., "comment": {...}}}
    {"event": "cheer-update", "data": {"petId": ..., "cheersCount": n, "cheered": bool}}
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


NEW_COMMENT = "new-comment"
CHEER_UPDATE = "cheer-update"


class Subscriber(Protocol):
    """The part of starlette's WebSocket the hub needs."""

    async def send_json(self, data: Any, mode: str = "text") -> None:
        ...


def pet_channel(pet_id: Any) -> str:
    return f"pet-{pet_id}"


class ChannelHub:
    """
    Per-pet broadcast groups.

    Thread Safety:
        Safe for a single asyncio event loop. join/leave/disconnect do not
        await, so they cannot interleave with each other; broadcast works
        on a snapshot of the member set.
    """

    def __init__(self) -> None:
        self._channels: Dict[str, Set[Subscriber]] = defaultdict(set)
        self._memberships: Dict[Subscriber, Set[str]] = defaultdict(set)

    # ── Membership ────────────────────────────────────────────────────────

    def join(self, socket: Subscriber, pet_id: Any) -> str:
        channel = pet_channel(pet_id)
        self._channels[channel].add(socket)
        self._memberships[socket].add(channel)
        logger.debug("Socket joined %s (%d members)", channel, len(self._channels[channel]))
        return channel

    def leave(self, socket: Subscriber, pet_id: Any) -> str:
        channel = pet_channel(pet_id)
        self._discard(socket, channel)
        return channel

    def disconnect(self, socket: Subscriber) -> None:
        """Remove a connection from every channel it joined."""
        for channel in list(self._memberships.get(socket, ())):
            self._discard(socket, channel)
        self._memberships.pop(socket, None)

    def _discard(self, socket: Subscriber, channel: str) -> None:
        members = self._channels.get(channel)
        if members is not None:
            members.discard(socket)
            if not members:
                del self._channels[channel]
        joined = self._memberships.get(socket)
        if joined is not None:
            joined.discard(channel)
            if not joined:
                del self._memberships[socket]

    def members(self, pet_id: Any) -> int:
        return len(self._channels.get(pet_channel(pet_id), ()))

    @property
    def connection_count(self) -> int:
        return len(self._memberships)

    # ── Broadcast ─────────────────────────────────────────────────────────

    async def broadcast(self, pet_id: Any, event: str, data: Dict[str, Any]) -> int:
        """
        Send one event to every current member of the pet's channel.

        Returns:
            Number of connections the frame was delivered to.
        """
        channel = pet_channel(pet_id)
        members = list(self._channels.get(channel, ()))
        if not members:
            return 0

        frame = {"event": event, "data": data}
        delivered = 0
        for socket in members:
            try:
                await socket.send_json(frame)
                delivered += 1
            except Exception as e:
                # Dead or closing socket: drop it everywhere
                logger.warning("Dropping subscriber on %s after send failure: %s", channel, e)
                self.disconnect(socket)

        logger.debug("Broadcast %s to %s: %d/%d delivered", event, channel, delivered, len(members))
        return delivered


# ── Singleton Instance ────────────────────────────────────────────────────
hub = ChannelHub()
