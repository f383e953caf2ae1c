"""Live sync WebSocket.

Provides:
- WS /ws/conversations - Pushes {"type": "conversations_changed"} whenever one
  of the caller's conversations is inserted, updated or deleted

The push is a hint only: clients re-fetch GET /chat/conversations.
"""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from haircare.core.deps import extract_token
from haircare.database import open_session
from haircare.errors import PersistenceError
from haircare.realtime.live_sync import CONVERSATIONS_SCOPE, ChangeEvent
from haircare.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])

CHANGED_MESSAGE = {"type": "conversations_changed"}


def _resolve_user(websocket: WebSocket):
    with open_session(websocket.app.state.engine) as session:
        return auth_service.resolve_session(session, extract_token(websocket))


@router.websocket("/ws/conversations")
async def conversations_feed(websocket: WebSocket) -> None:
    try:
        user_id = await run_in_threadpool(_resolve_user, websocket)
    except PersistenceError:
        user_id = None

    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(change: ChangeEvent) -> None:
        # Publishers run on worker threads
        if change.owner_id == user_id:
            loop.call_soon_threadsafe(queue.put_nowait, change)

    channel = websocket.app.state.live_sync
    handle = channel.subscribe(CONVERSATIONS_SCOPE, on_change)
    receiver = None
    try:
        await websocket.accept()
        logger.info(f"Live sync connected: user={user_id}")

        receiver = asyncio.create_task(_drain_client(websocket))
        while not receiver.done():
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                getter.cancel()
                break
            getter.result()
            await websocket.send_json(CHANGED_MESSAGE)
    except WebSocketDisconnect:
        pass
    finally:
        channel.unsubscribe(handle)
        if receiver is not None:
            receiver.cancel()
        logger.info(f"Live sync disconnected: user={user_id}")


async def _drain_client(websocket: WebSocket) -> None:
    """Read (and ignore) client frames until the socket closes."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
