import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from trivia_backend.ws.broadcast_hub import BroadcastHub
from trivia_backend.ws.gateway import ConnectionGateway
from trivia_backend.ws.schemas import error_event

logger = logging.getLogger(__name__)

ws_router = APIRouter()


@ws_router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket) -> None:
    hub: BroadcastHub = websocket.app.state.hub
    gateway: ConnectionGateway = websocket.app.state.gateway

    await websocket.accept()
    conn = hub.on_connect(websocket)
    logger.info("[ws-open] conn=%s client=%s", conn.id[:8], websocket.client)

    try:
        # Main event loop: one inbound frame at a time per connection
        while True:
            raw = await websocket.receive_text()
            await gateway.handle_text(conn, raw)

    except WebSocketDisconnect:
        logger.info("[ws-close] conn=%s room=%s player=%s", conn.id[:8], conn.room_code, conn.player_id)

    except Exception:
        logger.exception("[ws-error] conn=%s room=%s", conn.id[:8], conn.room_code)
        await hub.send_direct(conn, error_event("Internal server error"))

    finally:
        await hub.on_disconnect(conn)
