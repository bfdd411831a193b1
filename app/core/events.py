"""
Change notifications for live dashboards.

Services publish one event per committed mutation. Delivery is
best-effort: a failing subscriber is logged and skipped, it never
reaches the caller and never undoes the write that produced the event.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ChangeEventType(str, Enum):
    WORK_ORDER_CREATED = "work_order_created"
    INSTANCE_ADDED = "instance_added"
    MATERIAL_ASSIGNED = "material_assigned"
    PROCESS_STATUS_UPDATED = "process_status_updated"
    STAGE_UPDATED = "stage_updated"
    COMPONENT_REGISTERED = "component_registered"
    PROCESS_REGISTERED = "process_registered"
    COMPONENT_MATERIAL_UPDATED = "component_material_updated"
    INSTANCE_GROUP_CREATED = "instance_group_created"
    MATERIAL_USAGE_RECORDED = "material_usage_recorded"


@dataclass
class ChangeEvent:
    type: ChangeEventType
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, Any]:
        return {
            "event": self.type.value,
            "emittedAt": self.emitted_at.isoformat(),
            "payload": self.payload,
        }


Subscriber = Callable[[ChangeEvent], None]


class EventBus:
    """In-process publish/subscribe channel for change events"""

    def __init__(self):
        self._subscribers: Dict[Optional[ChangeEventType], List[Subscriber]] = {}

    def subscribe(self, callback: Subscriber, event_type: Optional[ChangeEventType] = None) -> None:
        """
        Register a callback for one event type, or for every event when
        event_type is None.
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, callback: Subscriber, event_type: Optional[ChangeEventType] = None) -> None:
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(
        self,
        event_type: ChangeEventType,
        payload: Union[Dict[str, Any], Callable[[], Dict[str, Any]]],
    ) -> Optional[ChangeEvent]:
        """
        Deliver an event to all matching subscribers.

        Must only be called after the transaction that produced the change
        has committed. `payload` may be a zero-argument callable; a failure
        while building it is logged and the event is dropped (returns None).
        """
        try:
            event = ChangeEvent(type=event_type, payload=payload() if callable(payload) else payload)
        except Exception:
            logger.error(f"Change notification payload failed for {event_type.value}", exc_info=True)
            return None
        callbacks = self._subscribers.get(event_type, []) + self._subscribers.get(None, [])
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.error(f"Change notification delivery failed for {event_type.value}", exc_info=True)
        return event


class ConnectionManager:
    """Fans change events out to connected WebSocket dashboards"""

    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping dashboard connection after send failure: {e}")
                self.disconnect(connection)

    def forward(self, event: ChangeEvent) -> None:
        # Services run in the threadpool; hand the send over to the server loop.
        if not self.active_connections:
            return
        if self.loop is None or not self.loop.is_running():
            logger.debug(f"Event loop not ready, dropping change event {event.type.value}")
            return
        asyncio.run_coroutine_threadsafe(self.broadcast(event.to_message()), self.loop)


event_bus = EventBus()
manager = ConnectionManager()
event_bus.subscribe(manager.forward)
