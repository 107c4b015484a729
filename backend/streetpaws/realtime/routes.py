"""
StreetPaws Backend — WebSocket Endpoint
=========================================

What:  WS /ws, where clients subscribe to the pets they are looking at.

Protocol (client → server, JSON text frames):
    {"action": "join",  "petId": "<id>"}   → {"event": "joined", "data": {"petId": "<id>"}}
    {"action": "leave", "petId": "<id>"}   → {"event": "left",   "data": {"petId": "<id>"}}
    anything else                          → {"event": "error",  "data": {"message": "..."}}

Malformed frames do not close the connection. Subscription needs no
authentication. On disconnect the socket leaves every channel.
"""

import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from streetpaws.realtime.hub import hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

ACTIONS = {"join": "joined", "leave": "left"}


def _pet_id(value: Any) -> Optional[str]:
    # Canonical form, so "ABC..." and "abc..." share a channel
    if not isinstance(value, str):
        return None
    try:
        return str(UUID(value))
    except ValueError:
        return None


def _parse(raw: str) -> Optional[Dict[str, Any]]:
    try:
        message = json.loads(raw)
    except ValueError:
        return None
    return message if isinstance(message, dict) else None


@router.websocket("/ws")
async def pet_channels(websocket: WebSocket) -> None:
    await websocket.accept()
    client = websocket.client.host if websocket.client else "unknown"
    logger.info("WebSocket connected from %s", client)

    try:
        while True:
            message = _parse(await websocket.receive_text())
            if message is None:
                await websocket.send_json(
                    {"event": "error", "data": {"message": "Messages must be JSON objects"}}
                )
                continue

            action = message.get("action")
            pet_id = _pet_id(message.get("petId"))
            if not isinstance(action, str) or action not in ACTIONS:
                await websocket.send_json(
                    {"event": "error", "data": {"message": f"Unknown action: {action!r}"}}
                )
                continue
            if pet_id is None:
                await websocket.send_json(
                    {"event": "error", "data": {"message": "petId must be a pet id"}}
                )
                continue

            if action == "join":
                hub.join(websocket, pet_id)
            else:
                hub.leave(websocket, pet_id)
            await websocket.send_json({"event": ACTIONS[action], "data": {"petId": pet_id}})

    except WebSocketDisconnect:
        logger.info("WebSocket from %s disconnected", client)
    finally:
        hub.disconnect(websocket)
