"""
i3/sway IPC Wire Protocol

Message framing and type codes for the i3-compatible IPC protocol spoken by
sway and i3.

Every message, in both directions, is a fixed 14 byte header followed by a
JSON payload:

    "i3-ipc" | payload length (u32) | message type (u32) | payload

Protocol documentation: https://i3wm.org/docs/ipc.html
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional
import json
import struct

from .errors import ProtocolError


MAGIC = b"i3-ipc"

# Native byte order, as the compositor writes it
HEADER_FORMAT = "=II"
HEADER_SIZE = len(MAGIC) + struct.calcsize(HEADER_FORMAT)

EVENT_MASK = 0x80000000


class MessageType(IntEnum):
    """i3 IPC message types."""

    RUN_COMMAND = 0
    GET_WORKSPACES = 1
    SUBSCRIBE = 2
    GET_OUTPUTS = 3
    GET_TREE = 4
    GET_MARKS = 5
    GET_BAR_CONFIG = 6
    GET_VERSION = 7
    GET_BINDING_MODES = 8
    GET_CONFIG = 9
    SEND_TICK = 10
    SYNC = 11
    GET_BINDING_STATE = 12


class EventType(IntEnum):
    """i3 IPC event types (with high bit set)."""

    WORKSPACE = 0x80000000
    OUTPUT = 0x80000001
    MODE = 0x80000002
    WINDOW = 0x80000003
    BARCONFIG_UPDATE = 0x80000004
    BINDING = 0x80000005
    SHUTDOWN = 0x80000006
    TICK = 0x80000007
    BAR_STATE_UPDATE = 0x80000014
    INPUT = 0x80000015

    @property
    def subscription_name(self) -> str:
        """Name used for this event in a SUBSCRIBE payload."""
        return self.name.lower()


def is_event(msg_type: int) -> bool:
    """Check whether a message type code denotes a pushed event."""
    return bool(msg_type & EVENT_MASK)


@dataclass
class Rect:
    """Rectangle in compositor pixel coordinates."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


class IPCMessage:
    """Represents one framed i3 IPC message."""

    def __init__(self, msg_type: int, payload: bytes = b""):
        self.msg_type = msg_type
        self.payload = payload

    @classmethod
    def request(cls, msg_type: MessageType, body: Any = None) -> "IPCMessage":
        """Build a request message.

        Strings are sent as-is (RUN_COMMAND takes a raw command string),
        anything else is JSON encoded.
        """
        if body is None:
            payload = b""
        elif isinstance(body, str):
            payload = body.encode("utf-8")
        else:
            payload = json.dumps(body).encode("utf-8")
        return cls(int(msg_type), payload)

    @property
    def is_event(self) -> bool:
        return is_event(self.msg_type)

    def encode(self) -> bytes:
        """Encode message to wire format."""
        header = MAGIC + struct.pack(HEADER_FORMAT, len(self.payload), self.msg_type)
        return header + self.payload

    @staticmethod
    def decode_header(header: bytes) -> tuple[int, int]:
        """Decode a header into (payload length, message type).

        Raises:
            ProtocolError: If the header is short or the magic is wrong
        """
        if len(header) != HEADER_SIZE:
            raise ProtocolError(
                f"Short header: need {HEADER_SIZE} bytes, have {len(header)}"
            )
        magic = header[: len(MAGIC)]
        if magic != MAGIC:
            raise ProtocolError(f"Invalid magic bytes: {magic!r}")
        length, msg_type = struct.unpack(HEADER_FORMAT, header[len(MAGIC) :])
        return length, msg_type

    def json(self) -> Any:
        """Decode the JSON payload.

        Raises:
            ProtocolError: If the payload is not valid UTF-8 JSON
        """
        try:
            return json.loads(self.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProtocolError(
                f"Undecodable payload for message type {self.msg_type:#x}: {e}"
            ) from e

    def __repr__(self) -> str:
        return f"IPCMessage(type={self.msg_type:#x}, {len(self.payload)} bytes)"


def event_type_of(msg_type: int) -> Optional[EventType]:
    """Map a raw type code to a known EventType, or None if unknown."""
    try:
        return EventType(msg_type)
    except ValueError:
        return None
