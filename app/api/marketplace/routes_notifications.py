from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing

from fastapi import APIRouter, Depends, Request, WebSocket
from fastapi.responses import StreamingResponse

from app.api.auth import authenticate_websocket, require_auth
from app.api.websocket_manager import get_connection_manager
from app.core.exceptions import UnauthorizedException
from app.domain.entities import AuthUser
from app.services import LiveChannel

from .common import get_services, logger

router = APIRouter(tags=["notifications"])

# Application-defined close code: handshake without a valid token
WS_CLOSE_UNAUTHORIZED = 4401


@router.get("/notifications")
async def list_notifications(user: AuthUser = Depends(require_auth)):
    notifications = await get_services().dispatcher.list(user.user_id)
    return {"notifications": [n.to_dict() for n in notifications]}


async def sse_stream(
    channel: LiveChannel, is_disconnected: Callable[[], Awaitable[bool]]
) -> AsyncIterator[str]:
    """Frame live channel events as Server-Sent Events."""
    async with aclosing(channel.events()) as events:
        async for event in events:
            if await is_disconnected():
                break
            yield f"data: {json.dumps(event)}\n\n"
    channel.close()


@router.get("/notifications/sse")
async def notifications_sse(request: Request, user: AuthUser = Depends(require_auth)):
    channel = get_services().open_live_channel(user.user_id)
    return StreamingResponse(
        sse_stream(channel, request.is_disconnected),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/notifications/live/stats")
async def live_stats(user: AuthUser = Depends(require_auth)):
    return get_connection_manager().get_stats()


@router.websocket("/notifications/ws")
async def notifications_ws(websocket: WebSocket):
    try:
        user = authenticate_websocket(websocket)
    except UnauthorizedException as e:
        logger.warning(f"WebSocket rejected: {e.message}")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    manager = get_connection_manager()
    await manager.connect(user.user_id, websocket)
    channel = get_services().open_live_channel(user.user_id)

    async def pump() -> None:
        async with aclosing(channel.events()) as events:
            async for event in events:
                await websocket.send_json(event)

    async def drain() -> None:
        # Inbound frames are ignored; only the disconnect matters
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    pump_task = asyncio.create_task(pump())
    drain_task = asyncio.create_task(drain())
    try:
        done, pending = await asyncio.wait(
            {pump_task, drain_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Live WebSocket for user {user.user_id} failed: {task.exception()}")

        if pump_task in done:
            # Channel ended on its own (store failure); client must reconnect
            try:
                await websocket.close()
            except RuntimeError:
                pass
    finally:
        channel.close()
        manager.disconnect(user.user_id, websocket)
