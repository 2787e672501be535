"""
Controller

Drives the event loop: pull an event, fetch a fresh tree, decide, dispatch.
Owns all long-lived state.
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Dict, Optional, TYPE_CHECKING

from . import topics
from .config import Config
from .connection import connect
from .decider import Apply, Decision, decide
from .dispatcher import CommandDispatcher
from .errors import ProtocolError, TransportError
from .events import Event, EventKind, EventListener, ShutdownEvent, WindowEvent
from .state import OrientationState
from .tree import get_tree

if TYPE_CHECKING:
    from .connection import IPCConnection


class ControllerState(Enum):
    """Event loop state machine."""

    IDLE = auto()
    AWAITING_EVENT = auto()
    DECIDING = auto()
    APPLYING = auto()
    SKIPPING = auto()
    DISCONNECTED = auto()


class EventAction(Enum):
    """What the controller does with a window event."""

    DECIDE = auto()
    FORGET = auto()
    IGNORE = auto()


# Every EventKind must appear here
EVENT_ACTIONS: Dict[EventKind, EventAction] = {
    EventKind.NEW: EventAction.DECIDE,
    EventKind.FOCUS: EventAction.DECIDE,
    EventKind.MOVE: EventAction.DECIDE,
    EventKind.CLOSE: EventAction.FORGET,
    EventKind.TITLE: EventAction.IGNORE,
    EventKind.FULLSCREEN_MODE: EventAction.IGNORE,
    EventKind.FLOATING: EventAction.IGNORE,
    EventKind.URGENT: EventAction.IGNORE,
    EventKind.MARK: EventAction.IGNORE,
}


class Controller:
    """Autosplit event loop.

    Single threaded. The only blocking points are reads on the two
    connections. ``stop()`` may be called from a signal handler; it closes
    both connections so a pending read returns and ``run()`` ends cleanly.
    """

    def __init__(
        self,
        bus,
        config: Config,
        connection: "IPCConnection",
        listener: EventListener,
        state: Optional[OrientationState] = None,
    ):
        """Initialize controller.

        Args:
            bus: Event bus instance (Pypubsub)
            config: Startup configuration
            connection: Request/reply connection for tree queries and commands
            listener: Event listener on its own connection
            state: Orientation state; a fresh one if omitted
        """
        self.bus = bus
        self.config = config
        self.connection = connection
        self.listener = listener
        self.state = state if state is not None else OrientationState()
        self.dispatcher = CommandDispatcher(
            bus=bus, connection=connection, state=self.state, dry_run=config.dry_run
        )

        self.current_state = ControllerState.IDLE
        self._stopping = False

    @classmethod
    def open(cls, bus, config: Config, socket_path: Optional[str] = None) -> "Controller":
        """Connect both channels and arm the event subscription.

        Raises:
            ConnectError: If either connection can't be established
            ProtocolError: If the subscription is refused
        """
        connection = connect(socket_path)
        try:
            event_connection = connect(socket_path or connection.socket_path)
        except BaseException:
            connection.close()
            raise

        listener = EventListener(event_connection)
        try:
            listener.subscribe()
        except BaseException:
            event_connection.close()
            connection.close()
            raise
        return cls(bus, config, connection, listener)

    def _set_state(self, new: ControllerState):
        old = self.current_state
        if old is new:
            return
        self.current_state = new
        self.bus.sendMessage(topics.CONTROLLER_STATE_CHANGED, old=old, new=new)

    def _disconnect(self, reason: str, error: Optional[Exception] = None):
        self._set_state(ControllerState.DISCONNECTED)
        self.bus.sendMessage(topics.CONTROLLER_DISCONNECTED, reason=reason, error=error)
        self.close()

    def run(self):
        """Process events until shutdown.

        Returns normally after ``stop()`` or a compositor shutdown event.

        Raises:
            TransportError: On a lost connection
            ProtocolError: On a malformed message
        """
        self._set_state(ControllerState.AWAITING_EVENT)
        try:
            while not self._stopping:
                event = self.listener.next_event()
                self.bus.sendMessage(topics.EVENT_RECEIVED, event=event)
                if not self.handle_event(event):
                    return
        except (TransportError, ProtocolError) as e:
            if self._stopping:
                self._disconnect("stopped")
                return
            self._disconnect("error", e)
            raise

        self._disconnect("stopped")

    def handle_event(self, event: Event) -> bool:
        """Handle one event.

        Returns:
            False once the loop must end
        """
        if isinstance(event, ShutdownEvent):
            self._disconnect(f"compositor {event.change}")
            return False

        action = EVENT_ACTIONS[event.kind]
        if action is EventAction.DECIDE:
            self.decide_and_apply(event.container_id)
        elif action is EventAction.FORGET:
            self.forget(event)
        else:
            self.bus.sendMessage(topics.EVENT_IGNORED, event=event)
        return True

    def forget(self, event: WindowEvent):
        """Drop state keyed by a closed container. No tree fetch, no command.

        Compositors emit ``close`` for views, while state is keyed by split
        containers and workspaces, so this only hits when a tracked node is
        itself the one closed. A container that disappears because its
        children went away is dropped by ``prune`` on the next snapshot.
        """
        if self.state.forget(event.container_id):
            self.bus.sendMessage(topics.STATE_FORGOTTEN, container_id=event.container_id)

    def decide_and_apply(self, target_id: int) -> Decision:
        """Run one decision cycle against a freshly fetched tree."""
        self._set_state(ControllerState.DECIDING)
        tree = get_tree(self.connection)

        pruned = self.state.prune(tree.ids())
        if pruned:
            self.bus.sendMessage(topics.STATE_PRUNED, container_ids=pruned)

        decision = decide(tree, target_id, self.config, self.state)
        if isinstance(decision, Apply):
            self._set_state(ControllerState.APPLYING)
            self.dispatcher.apply(decision.container_id, decision.orientation, decision.child_id)
        else:
            self._set_state(ControllerState.SKIPPING)
            self.bus.sendMessage(topics.DECISION_SKIPPED, decision=decision)

        self._set_state(ControllerState.AWAITING_EVENT)
        return decision

    def stop(self):
        """Request shutdown; safe to call from a signal handler."""
        self._stopping = True
        self.close()

    def close(self):
        """Close both connections."""
        self.listener.close()
        self.connection.close()
