"""Real-time friend channel.

Currently a relay stub: it greets the caller and echoes text frames back.
Ping frames are answered with pong by the ASGI server itself.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, status
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

GREETING = "Hello!\n"
MISSING_USER = "Error: No user specified\n"


@router.websocket("/friendws")
async def friend_ws(websocket: WebSocket, user: Optional[str] = None) -> None:
    if not user:
        await _reject(websocket)
        return

    await websocket.accept()
    logger.info("Friend channel opened for %s", user)
    await websocket.send_text(GREETING)
    await _echo(websocket)
    logger.info("Friend channel closed for %s", user)


async def _echo(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        text = message.get("text")
        if text is not None:
            await websocket.send_text(text)


async def _reject(websocket: WebSocket) -> None:
    if "websocket.http.response" in websocket.scope.get("extensions", {}):
        await websocket.send_denial_response(PlainTextResponse(MISSING_USER, status_code=status.HTTP_404_NOT_FOUND))
    else:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=MISSING_USER.strip())
