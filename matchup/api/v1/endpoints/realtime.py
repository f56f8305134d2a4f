# matchup/api/v1/endpoints/realtime.py
"""
WebSocket endpoint for per-game realtime updates.

Clients authenticate with `?token=<jwt>` and then send
`{"action": "join-game" | "leave-game", "gameId": "..."}` to follow or
stop following a game. Server frames are `{"event", "gameId", "payload"}`.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from jose import JWTError

from matchup.api.deps import decode_token
from matchup.realtime.connection import WebSocketConnection
from matchup.realtime.hub import build_message, channel_hub

router = APIRouter(tags=["Realtime"])
logger = logging.getLogger(__name__)


@router.websocket("/ws/games")
async def game_updates(websocket: WebSocket, token: str = ""):
    try:
        user = decode_token(token)
    except (JWTError, ValueError):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    writer = asyncio.create_task(connection.writer())
    logger.info(f"Realtime client connected: {user.user_id}")

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                connection.send(build_message("", "error", {"message": "Invalid JSON"}))
                continue

            action = data.get("action") if isinstance(data, dict) else None
            game_id = data.get("gameId") if isinstance(data, dict) else None
            if not isinstance(game_id, str) or not game_id:
                connection.send(build_message("", "error", {"message": "gameId is required"}))
                continue

            if action == "join-game":
                channel_hub.subscribe(connection, game_id)
                connection.send(build_message(game_id, "subscribed", {}))
            elif action == "leave-game":
                channel_hub.unsubscribe(connection, game_id)
                connection.send(build_message(game_id, "unsubscribed", {}))
            else:
                connection.send(
                    build_message(game_id, "error", {"message": f"Unknown action: {action}"})
                )
    except WebSocketDisconnect:
        logger.info(f"Realtime client disconnected: {user.user_id}")
    finally:
        channel_hub.disconnect(connection)
        connection.close()
        await writer
