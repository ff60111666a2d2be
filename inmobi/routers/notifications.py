"""
Websocket endpoint for live new-listing notifications.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
import json
import logging

from inmobi.services.notifications import NotificationHub, get_notification_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


@router.websocket("/ws/notifications")
async def notifications_socket(
    websocket: WebSocket,
    hub: NotificationHub = Depends(get_notification_hub)
):
    """
    Clients send ``subscribe`` (with optional filters), ``unsubscribe`` or
    ``ping``; subscribers receive ``new_property`` events for matching listings.
    """
    await websocket.accept()
    await hub.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "payload": {"message": "Invalid JSON"}})
                continue
            await hub.handle_message(websocket, message)
    except WebSocketDisconnect:
        logger.debug("Notification socket closed by client")
    finally:
        hub.disconnect(websocket)
