"""
Compositor Events

Closed set of window events and the listener that pulls them off the event
connection in delivery order.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

from .errors import ProtocolError
from .protocol import EventType, IPCMessage, event_type_of
from .tree import Node, parse_node

if TYPE_CHECKING:
    from .connection import IPCConnection


class EventKind(Enum):
    """The "change" of a window event."""

    NEW = "new"
    CLOSE = "close"
    FOCUS = "focus"
    TITLE = "title"
    FULLSCREEN_MODE = "fullscreen_mode"
    MOVE = "move"
    FLOATING = "floating"
    URGENT = "urgent"
    MARK = "mark"


@dataclass(frozen=True)
class WindowEvent:
    """A window lifecycle notification.

    ``container`` is the node as the compositor saw it when emitting the
    event. Its geometry may already be stale; decisions re-resolve
    ``container_id`` against a fresh tree.
    """

    kind: EventKind
    container_id: int
    container: Optional[Node] = None


@dataclass(frozen=True)
class ShutdownEvent:
    """The compositor is exiting or restarting."""

    change: str


Event = Union[WindowEvent, ShutdownEvent]

SUBSCRIBED_EVENTS = (EventType.WINDOW, EventType.SHUTDOWN)


def parse_window_event(payload) -> WindowEvent:
    if not isinstance(payload, dict):
        raise ProtocolError(f"Window event must be an object, got {payload!r}")
    try:
        kind = EventKind(payload.get("change"))
    except ValueError:
        raise ProtocolError(f"Unknown window event change {payload.get('change')!r}")

    container_data = payload.get("container")
    if not isinstance(container_data, dict):
        raise ProtocolError(f"Window event {kind.value!r} has no container")
    container = parse_node(container_data)
    return WindowEvent(kind=kind, container_id=container.id, container=container)


def parse_event(msg: IPCMessage) -> Event:
    """Turn a pushed IPC message into an Event.

    Raises:
        ProtocolError: For event types this listener never subscribes to
    """
    event_type = event_type_of(msg.msg_type)
    payload = msg.json()

    if event_type is EventType.WINDOW:
        return parse_window_event(payload)
    if event_type is EventType.SHUTDOWN:
        change = payload.get("change") if isinstance(payload, dict) else None
        return ShutdownEvent(change=str(change or "exit"))
    raise ProtocolError(f"Unexpected event type {msg.msg_type:#x}")


class EventListener:
    """Sequential stream of compositor events.

    Order is the compositor's delivery order; nothing is reordered or
    coalesced. The stream ends only with the connection.
    """

    def __init__(self, connection: "IPCConnection"):
        self.connection = connection
        self.subscribed = False

    def subscribe(self):
        """Arm the window and shutdown event stream."""
        self.connection.subscribe(SUBSCRIBED_EVENTS)
        self.subscribed = True

    def next_event(self) -> Event:
        """Block until the next event.

        Raises:
            ConnectionClosed: On end of stream
            ProtocolError: On an unknown or malformed event
        """
        return parse_event(self.connection.next_event())

    def close(self):
        self.connection.close()
