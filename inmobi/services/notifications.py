"""
In-memory websocket hub for new-listing notifications.

Clients move from connected to subscribed by sending ``subscribe`` with
optional filters, and to unsubscribed with ``unsubscribe``. Only subscribed
clients whose filters match a listing receive it. Nothing is persisted and
delivery is best effort.
"""

from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime, timezone
from inmobi.models.property import Property, PropertyType
import enum
import logging
import math

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("location", "min_price", "max_price", "property_type", "bedrooms", "bathrooms")


class NotificationSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionState(str, enum.Enum):
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class Subscription:
    def __init__(self, user_id: Optional[str] = None):
        self.state = ConnectionState.CONNECTED
        self.filters: Dict[str, Any] = {}
        self.user_id = user_id


def _envelope(message_type: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    message = {"type": message_type}
    if payload is not None:
        message["payload"] = payload
    return message


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _number(field: str, value: Any, cast: type) -> Any:
    if isinstance(value, bool) or not math.isfinite(float(value)):
        raise ValueError(f"{field} must be a finite number")
    return cast(value)


def parse_filters(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Normalize client-supplied subscription filters.

    Raises:
        ValueError: If filters are not an object, a numeric filter is not a
            finite number or the type is unknown
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("filters must be an object")

    filters: Dict[str, Any] = {}
    for field in FILTER_FIELDS:
        value = raw.get(field)
        if value is None or value == "":
            continue
        if field == "location":
            filters[field] = str(value).strip()
        elif field == "property_type":
            filters[field] = PropertyType(str(value).lower()).value
        elif field == "bathrooms":
            filters[field] = _number(field, value, float)
        else:
            filters[field] = _number(field, value, int)
    return filters


class NotificationHub:
    """
    Tracks live sockets and their subscriptions.
    All methods run on the event loop; no locking is needed.
    """

    def __init__(self):
        self._clients: Dict[NotificationSocket, Subscription] = {}

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    def subscription_for(self, socket: NotificationSocket) -> Optional[Subscription]:
        return self._clients.get(socket)

    async def connect(self, socket: NotificationSocket, user_id: Optional[str] = None) -> None:
        self._clients[socket] = Subscription(user_id=user_id)
        logger.info(f"Notification client connected ({self.connection_count} open)")
        await socket.send_json(_envelope("connected", {
            "message": "Connected to real estate notification system",
            "timestamp": _timestamp(),
        }))

    def disconnect(self, socket: NotificationSocket) -> None:
        if self._clients.pop(socket, None) is not None:
            logger.info(f"Notification client disconnected ({self.connection_count} open)")

    async def handle_message(self, socket: NotificationSocket, message: Any) -> None:
        """Apply one client message and send the reply."""
        subscription = self._clients.get(socket)
        if subscription is None:
            return

        if not isinstance(message, dict):
            await socket.send_json(_envelope("error", {"message": "Messages must be JSON objects"}))
            return

        message_type = message.get("type")
        payload = message.get("payload") or {}

        if message_type == "subscribe":
            raw_filters = payload.get("filters", payload) if isinstance(payload, dict) else {}
            try:
                subscription.filters = parse_filters(raw_filters)
            except (TypeError, ValueError) as e:
                await socket.send_json(_envelope("error", {"message": f"Invalid filters: {e}"}))
                return
            subscription.state = ConnectionState.SUBSCRIBED
            await socket.send_json(_envelope("subscribed", {
                "message": "Successfully subscribed to property notifications",
                "filters": subscription.filters,
            }))
        elif message_type == "unsubscribe":
            subscription.filters = {}
            subscription.state = ConnectionState.UNSUBSCRIBED
            await socket.send_json(_envelope("unsubscribed", {
                "message": "Successfully unsubscribed from property notifications",
            }))
        elif message_type == "ping":
            await socket.send_json(_envelope("pong"))
        else:
            logger.warning(f"Unknown notification message type: {message_type}")
            await socket.send_json(_envelope("error", {"message": f"Unknown message type: {message_type}"}))

    async def broadcast_property(self, prop: Property, event: str = "new_property") -> int:
        """
        Send ``event`` for ``prop`` to every matching subscriber.

        Returns:
            Number of clients notified
        """
        message = _envelope(event, {
            "property": {
                "id": str(prop.id),
                "title": prop.title,
                "price": prop.price,
                "address": prop.address,
                "city": prop.city,
                "state": prop.state,
                "zip_code": prop.zip_code,
                "bedrooms": prop.bedrooms,
                "bathrooms": prop.bathrooms,
                "square_feet": prop.square_feet,
                "property_type": prop.property_type.value,
                "is_premium": prop.is_premium,
                "images": list(prop.images or []),
            },
            "timestamp": _timestamp(),
        })

        delivered = 0
        stale: List[NotificationSocket] = []
        for socket, subscription in list(self._clients.items()):
            if subscription.state != ConnectionState.SUBSCRIBED:
                continue
            if not prop.matches(subscription.filters):
                continue
            try:
                await socket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping notification client after send failure: {e}")
                stale.append(socket)

        for socket in stale:
            self.disconnect(socket)

        logger.info(f"Broadcast {event} for property {prop.id} to {delivered} clients")
        return delivered


notification_hub = NotificationHub()


def get_notification_hub() -> NotificationHub:
    return notification_hub
