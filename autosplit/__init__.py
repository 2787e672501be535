"""
autosplit

Automatic split orientation for sway and i3.

This package provides:
- i3 IPC wire protocol framing and socket connections
- A model of the compositor layout tree
- The aspect-ratio orientation rule with workspace/output exclusions
- A controller that applies it on window events

Example usage:
    from pubsub import pub
    from autosplit import Config, Controller

    config = Config(excluded_workspaces=("9:*",))
    controller = Controller.open(pub, config)
    controller.run()

Or run directly:
    python -m autosplit
"""

__version__ = "0.1.0"
__author__ = "pinpox"

from .errors import (
    AutosplitError,
    ConnectError,
    ProtocolError,
    TransportError,
    ConnectionClosed,
)

from .protocol import MessageType, EventType, IPCMessage, Rect

from .connection import IPCConnection, connect, get_socket_path

from .tree import Node, NodeKind, Layout, Orientation, Tree, get_tree

from .events import EventKind, WindowEvent, ShutdownEvent, EventListener

from .config import Config

from .state import OrientationState

from .decider import Apply, Skip, SkipReason, decide, orientation_for

from .dispatcher import CommandDispatcher

from .controller import Controller, ControllerState

from . import topics

__all__ = [
    # Version
    "__version__",
    # Errors
    "AutosplitError",
    "ConnectError",
    "ProtocolError",
    "TransportError",
    "ConnectionClosed",
    # Protocol
    "MessageType",
    "EventType",
    "IPCMessage",
    "Rect",
    # Connection
    "IPCConnection",
    "connect",
    "get_socket_path",
    # Tree
    "Node",
    "NodeKind",
    "Layout",
    "Orientation",
    "Tree",
    "get_tree",
    # Events
    "EventKind",
    "WindowEvent",
    "ShutdownEvent",
    "EventListener",
    # Decisions
    "Config",
    "OrientationState",
    "Apply",
    "Skip",
    "SkipReason",
    "decide",
    "orientation_for",
    # Control
    "CommandDispatcher",
    "Controller",
    "ControllerState",
    # Event topics
    "topics",
]
