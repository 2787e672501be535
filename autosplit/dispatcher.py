"""
Command Dispatcher

Translates an Apply decision into a compositor layout command scoped to one
container and records the orientation once the compositor accepted it.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from . import topics
from .tree import Orientation

if TYPE_CHECKING:
    from .connection import IPCConnection
    from .state import OrientationState


def layout_command(child_id: int, orientation: Orientation) -> str:
    """Build the layout command that sets the split of ``child_id``'s parent.

    ``layout`` acts on the parent of the matched container, and ``con_id``
    criteria never match a workspace, so the command names a direct child of
    the split container rather than the container itself.
    """
    return f"[con_id={child_id}] layout {orientation.layout.value}"


class CommandDispatcher:
    """Issues layout commands and keeps OrientationState in step.

    State is never updated optimistically: an entry is written only after
    every result in the compositor's reply reports success.
    """

    def __init__(
        self,
        bus,
        connection: "IPCConnection",
        state: "OrientationState",
        dry_run: bool = False,
    ):
        """Initialize command dispatcher.

        Args:
            bus: Event bus instance (Pypubsub)
            connection: Request/reply connection
            state: Orientation state owned by the controller
            dry_run: Publish commands without sending them
        """
        self.bus = bus
        self.connection = connection
        self.state = state
        self.dry_run = dry_run

    def apply(self, container_id: int, orientation: Orientation, child_id: int) -> bool:
        """Set a container's split orientation.

        Args:
            container_id: Split container (or workspace) to orient
            orientation: Orientation to apply
            child_id: Direct child of the container the command is addressed to

        Returns:
            True if the compositor accepted the command

        Raises:
            TransportError: On socket failure
            ProtocolError: On a malformed reply
        """
        command = layout_command(child_id, orientation)
        self.bus.sendMessage(topics.COMMAND_SENT, command=command, dry_run=self.dry_run)

        if self.dry_run:
            return False

        results = self.connection.run_command(command)
        errors = [
            str(r.get("error", "unknown error")) if isinstance(r, dict) else repr(r)
            for r in results
            if not (isinstance(r, dict) and r.get("success") is True)
        ]
        if errors or not results:
            self.bus.sendMessage(
                topics.COMMAND_FAILED,
                command=command,
                error="; ".join(errors) or "empty reply",
            )
            return False

        self.state.record(container_id, orientation)
        self.bus.sendMessage(
            topics.DECISION_APPLIED, container_id=container_id, orientation=orientation
        )
        return True
