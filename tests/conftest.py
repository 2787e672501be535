"""
Shared pytest fixtures for autosplit tests.
"""

import socket
from collections import deque

import pytest
from pubsub import pub

from autosplit.connection import IPCConnection
from autosplit.errors import ConnectionClosed
from autosplit.protocol import IPCMessage, MessageType


@pytest.fixture(autouse=True)
def _reset_global_bus():
    """Drop listeners left on pypubsub's global bus by daemon.main()."""
    yield
    pub.unsubAll()


class TreeFactory:
    """Builds GET_TREE style JSON dictionaries."""

    @staticmethod
    def node(node_id, node_type, name=None, width=0, height=0, x=0, y=0, **extra):
        data = {
            "id": node_id,
            "type": node_type,
            "name": name,
            "rect": {"x": x, "y": y, "width": width, "height": height},
            "layout": extra.pop("layout", "none"),
            "focused": extra.pop("focused", False),
            "nodes": list(extra.pop("nodes", [])),
            "floating_nodes": list(extra.pop("floating_nodes", [])),
        }
        data.update(extra)
        return data

    def root(self, *outputs):
        return self.node(1, "root", "root", 3840, 1080, layout="splith", nodes=outputs)

    def output(self, node_id, name, *workspaces, width=1920, height=1080, x=0):
        return self.node(
            node_id, "output", name, width, height, x=x, layout="output", nodes=workspaces
        )

    def workspace(
        self, node_id, name, *nodes, floating=(), width=1920, height=1080, layout="splith"
    ):
        return self.node(
            node_id,
            "workspace",
            name,
            width,
            height,
            layout=layout,
            nodes=nodes,
            floating_nodes=floating,
        )

    def con(self, node_id, width, height, *children, layout="splith", floating=False):
        return self.node(
            node_id,
            "floating_con" if floating else "con",
            None,
            width,
            height,
            layout=layout,
            nodes=children,
        )

    def window(self, node_id, width, height, focused=False, floating=False, fullscreen=False):
        return self.node(
            node_id,
            "floating_con" if floating else "con",
            f"window {node_id}",
            width,
            height,
            focused=focused,
            fullscreen_mode=1 if fullscreen else 0,
        )


@pytest.fixture
def trees():
    """Factory for tree JSON payloads."""
    return TreeFactory()


@pytest.fixture
def split_tree(trees):
    """Tree with one split container (id 10) holding focused window 11.

    Output 2 "eDP-1", workspace 3 "1" by default.
    """

    def build(width, height, workspace="1", output="eDP-1", floating=False, layout="splith"):
        container = trees.con(
            10,
            width,
            height,
            trees.window(11, width // 2, height, focused=True),
            trees.window(12, width // 2, height),
            layout=layout,
            floating=floating,
        )
        if floating:
            ws = trees.workspace(3, workspace, floating=[container])
        else:
            ws = trees.workspace(3, workspace, container)
        return trees.root(trees.output(2, output, ws))

    return build


@pytest.fixture
def two_output_tree(trees):
    """Two outputs, each with a split container; focus is on "DP-1"."""
    left = trees.output(
        2,
        "eDP-1",
        trees.workspace(
            3, "1", trees.con(10, 1200, 800, trees.window(11, 600, 800), trees.window(12, 600, 800))
        ),
    )
    right = trees.output(
        4,
        "DP-1",
        trees.workspace(
            5,
            "2",
            trees.con(
                20, 1200, 800, trees.window(21, 600, 800, focused=True), trees.window(22, 600, 800)
            ),
        ),
        x=1920,
    )
    return trees.root(left, right)


class RecordingBus:
    """Stands in for pypubsub's ``pub``, recording published messages."""

    def __init__(self):
        self.messages = []

    def sendMessage(self, topic, **kwargs):
        self.messages.append((topic, kwargs))

    def subscribe(self, listener, topic):
        pass

    def sent(self, topic):
        return [kwargs for name, kwargs in self.messages if name == topic]

    def topics(self):
        return [name for name, _ in self.messages]


@pytest.fixture
def bus():
    return RecordingBus()


class FakeConnection:
    """Request/reply connection serving a scripted tree and command results."""

    def __init__(self, tree=None):
        self.tree = tree
        self.socket_path = "/run/user/1000/sway-ipc.sock"
        self.results = deque()
        self.commands = []
        self.requests = []
        self.closed = False

    def send_request(self, msg_type, body=None):
        if self.closed:
            raise ConnectionClosed("Connection is closed")
        self.requests.append(msg_type)
        if msg_type == MessageType.GET_TREE:
            return self.tree
        raise AssertionError(f"Unexpected request {msg_type!r}")

    def run_command(self, command):
        if self.closed:
            raise ConnectionClosed("Connection is closed")
        self.commands.append(command)
        if self.results:
            return self.results.popleft()
        return [{"success": True}]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_connection():
    return FakeConnection()


class FakeListener:
    """Event listener replaying a fixed list, then reporting end of stream."""

    def __init__(self, events=()):
        self.events = deque(events)
        self.closed = False

    def next_event(self):
        if self.closed or not self.events:
            raise ConnectionClosed("Compositor closed the connection")
        return self.events.popleft()

    def close(self):
        self.closed = True


@pytest.fixture
def fake_listener():
    return FakeListener()


def frame(msg_type, payload):
    """Encode one message the way the compositor would send it."""
    if isinstance(payload, bytes):
        return IPCMessage(int(msg_type), payload).encode()
    return IPCMessage.request(msg_type, payload).encode()


@pytest.fixture
def framed():
    """Encoder for compositor-side messages."""
    return frame


@pytest.fixture
def socket_pair():
    """An IPCConnection wired to a raw socket playing the compositor."""
    client, server = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    conn = IPCConnection(client, socket_path="test")
    yield conn, server
    conn.close()
    server.close()
