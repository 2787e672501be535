"""
autosplit Errors

Failures that reach the controller. A skipped decision is not an error; see
``decider.SkipReason``.
"""


class AutosplitError(Exception):
    """Base class for autosplit failures."""


class ConnectError(AutosplitError):
    """The compositor socket could not be opened or the handshake failed."""


class ProtocolError(AutosplitError):
    """The compositor sent a malformed or unexpected message."""


class TransportError(AutosplitError, OSError):
    """Socket read/write failure. Terminal for the connection."""


class ConnectionClosed(TransportError):
    """The compositor closed the socket (end of stream)."""
