import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from hotel_realtime.core.security import decode_token
from hotel_realtime.services.connection import ConnectionState
from hotel_realtime.services.notification_store import ChangeKind, StoreChange
from hotel_realtime.services.realtime import RealTimeSession
from hotel_realtime.services.templates import to_item

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


class ConsumerHub:
    """UI consumers connected over WebSocket. Consumers come and go without
    affecting the push connection."""

    def __init__(self, realtime: RealTimeSession):
        self.realtime = realtime
        self.active: list[WebSocket] = []
        realtime.connection.status_listeners.add(self.on_status)
        realtime.store.listeners.add(self.on_store_change)

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active.append(ws)
        await ws.send_json(self.status_event())

    def disconnect(self, ws: WebSocket):
        self.active = [c for c in self.active if c is not ws]

    async def broadcast(self, data: dict):
        for ws in list(self.active):
            try:
                await ws.send_json(data)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug("Dropping UI consumer: %s", e)
                self.disconnect(ws)

    def status_event(self) -> dict:
        return {
            "event": "status",
            "data": {
                "state": self.realtime.connection.state.value,
                "is_connected": self.realtime.is_connected,
                "unread_count": self.realtime.store.unread_count,
            },
        }

    async def on_status(self, state: ConnectionState):
        await self.broadcast(self.status_event())

    async def on_store_change(self, change: StoreChange):
        data = {
            "kind": change.kind.value,
            "ids": list(change.ids),
            "unread_count": self.realtime.store.unread_count,
            "total": len(self.realtime.store),
        }
        if change.kind is ChangeKind.INSERTED:
            record = self.realtime.store.get(change.ids[0])
            if record is not None:
                data["item"] = to_item(record).model_dump(mode="json")
        await self.broadcast({"event": "notifications", "data": data})


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    # Auth via query param: ws://host/v1/ws?token=<jwt>
    token = ws.query_params.get("token")
    payload = decode_token(token) if token else None
    if not payload or payload.get("type") != "access":
        await ws.close(code=4001, reason="Invalid token")
        return

    hub: ConsumerHub = ws.app.state.hub
    await hub.connect(ws)

    try:
        while True:
            try:
                data = await ws.receive_json()
            except ValueError:
                logger.debug("Ignoring non-JSON frame from UI consumer")
                continue
            action = data.get("action") if isinstance(data, dict) else None
            store = hub.realtime.store

            if action == "read" and data.get("id"):
                store.mark_read(str(data["id"]))
            elif action == "read_all":
                store.mark_all_read()
            elif action == "clear":
                store.clear()
            elif action == "status":
                await ws.send_json(hub.status_event())
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(ws)
