"""
IPC Connection Module

Handles low-level i3/sway IPC socket communication.

One ``IPCConnection`` carries strictly sequential request/reply traffic; a
second connection is opened for the event subscription so that event delivery
and queries never block each other.
"""

from __future__ import annotations
import os
import socket
from collections import deque
from typing import Any, Deque, Iterable, Optional

from .errors import ConnectError, ConnectionClosed, ProtocolError, TransportError
from .protocol import HEADER_SIZE, EventType, IPCMessage, MessageType


SOCKET_ENV_VARS = ("SWAYSOCK", "I3SOCK")


def get_socket_path() -> Optional[str]:
    """Get the compositor IPC socket path from the environment."""
    for var in SOCKET_ENV_VARS:
        path = os.getenv(var)
        if path:
            return path
    return None


class IPCConnection:
    """Manages one i3 IPC socket connection."""

    def __init__(self, sock: socket.socket, socket_path: Optional[str] = None):
        self.socket = sock
        self.socket_path = socket_path
        self.version: Optional[dict] = None

        # Events that arrived while a reply was awaited
        self.pending_events: Deque[IPCMessage] = deque()
        self._closed = False

    @classmethod
    def open(cls, socket_path: Optional[str] = None) -> "IPCConnection":
        """Open a raw connection to the compositor socket.

        Raises:
            ConnectError: If no socket path is known or the socket can't be opened
        """
        if socket_path is None:
            socket_path = get_socket_path()
        if not socket_path:
            raise ConnectError(
                "No compositor socket: neither SWAYSOCK nor I3SOCK is set"
            )

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(socket_path)
        except OSError as e:
            sock.close()
            raise ConnectError(f"Failed to connect to {socket_path}: {e}") from e
        return cls(sock, socket_path)

    @property
    def closed(self) -> bool:
        return self._closed

    def handshake(self) -> dict:
        """Verify that the peer speaks the i3 IPC protocol.

        Returns:
            The compositor's GET_VERSION reply

        Raises:
            ConnectError: If the peer does not answer like an i3/sway compositor
        """
        try:
            version = self.send_request(MessageType.GET_VERSION)
        except (TransportError, ProtocolError) as e:
            raise ConnectError(f"Handshake failed: {e}") from e

        if not isinstance(version, dict) or not isinstance(version.get("major"), int):
            raise ConnectError(f"Handshake failed: unexpected version reply {version!r}")

        self.version = version
        return version

    def send_message(self, msg: IPCMessage):
        """Write a framed message to the socket."""
        if self._closed:
            raise ConnectionClosed("Connection is closed")
        try:
            self.socket.sendall(msg.encode())
        except OSError as e:
            raise TransportError(f"Socket send error: {e}") from e

    def read_exact(self, n: int) -> bytes:
        """Read exactly n bytes, blocking until they arrive."""
        response = bytearray()
        while n > 0:
            try:
                chunk = self.socket.recv(n)
            except OSError as e:
                if self._closed:
                    raise ConnectionClosed("Connection closed during read") from e
                raise TransportError(f"Socket recv error: {e}") from e
            if not chunk:
                raise ConnectionClosed("Compositor closed the connection")
            n -= len(chunk)
            response += chunk
        return bytes(response)

    def read_message(self) -> IPCMessage:
        """Read the next framed message from the socket."""
        length, msg_type = IPCMessage.decode_header(self.read_exact(HEADER_SIZE))
        payload = self.read_exact(length) if length else b""
        return IPCMessage(msg_type, payload)

    def send_request(self, msg_type: MessageType, body: Any = None) -> Any:
        """Send a request and block for its reply.

        Args:
            msg_type: Request message type
            body: Command string or JSON-serializable payload

        Returns:
            Decoded JSON reply

        Raises:
            TransportError: On socket failure or end of stream
            ProtocolError: On a malformed reply or a reply of the wrong type
        """
        self.send_message(IPCMessage.request(msg_type, body))

        while True:
            reply = self.read_message()
            if reply.is_event:
                self.pending_events.append(reply)
                continue
            if reply.msg_type != msg_type:
                raise ProtocolError(
                    f"Expected reply of type {int(msg_type)}, got {reply.msg_type}"
                )
            return reply.json()

    def run_command(self, command: str) -> list:
        """Run a compositor command and return its per-command results."""
        results = self.send_request(MessageType.RUN_COMMAND, command)
        if not isinstance(results, list):
            raise ProtocolError(f"Unexpected RUN_COMMAND reply: {results!r}")
        return results

    def subscribe(self, event_types: Iterable[EventType]):
        """Arm the event stream for the given event types.

        Raises:
            ProtocolError: If the compositor refuses the subscription
        """
        names = [EventType(t).subscription_name for t in event_types]
        reply = self.send_request(MessageType.SUBSCRIBE, names)
        if not isinstance(reply, dict) or reply.get("success") is not True:
            raise ProtocolError(f"Subscription to {names} refused: {reply!r}")

    def next_event(self) -> IPCMessage:
        """Block until the next pushed event.

        Raises:
            ConnectionClosed: If the compositor closed the socket
            ProtocolError: If a non-event message arrives
        """
        if self.pending_events:
            return self.pending_events.popleft()

        msg = self.read_message()
        if not msg.is_event:
            raise ProtocolError(f"Unexpected reply of type {msg.msg_type} on event stream")
        return msg

    def close(self):
        """Close the connection, unblocking any pending read."""
        if self._closed:
            return
        self._closed = True
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Peer already gone
            pass
        self.socket.close()


def connect(socket_path: Optional[str] = None) -> IPCConnection:
    """Open a connection and perform the version handshake.

    Raises:
        ConnectError: If the socket can't be opened or the handshake fails
    """
    conn = IPCConnection.open(socket_path)
    try:
        conn.handshake()
    except ConnectError:
        conn.close()
        raise
    return conn
