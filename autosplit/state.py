"""
Orientation State

Tracks the orientation autosplit itself last applied to each container.

Single writer: only the controller's thread touches an ``OrientationState``.
The dispatcher receives it by reference and records an orientation only after
the compositor confirmed the command.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from .tree import Orientation


class OrientationState:
    """Container id -> last orientation applied by this process."""

    def __init__(self):
        self._applied: Dict[int, Orientation] = {}

    def get(self, container_id: int) -> Optional[Orientation]:
        return self._applied.get(container_id)

    def record(self, container_id: int, orientation: Orientation):
        """Remember a confirmed orientation."""
        self._applied[container_id] = orientation

    def forget(self, container_id: int) -> bool:
        """Drop a container's entry.

        Returns:
            True if an entry was removed
        """
        return self._applied.pop(container_id, None) is not None

    def prune(self, live_ids: Iterable[int]) -> List[int]:
        """Drop entries for containers absent from a snapshot.

        Close events may arrive out of order or not at all, so stale entries
        are collected here lazily.

        Returns:
            Ids that were removed
        """
        live = set(live_ids)
        stale = [cid for cid in self._applied if cid not in live]
        for cid in stale:
            del self._applied[cid]
        return stale

    def __contains__(self, container_id: int) -> bool:
        return container_id in self._applied

    def __len__(self) -> int:
        return len(self._applied)

    def __repr__(self) -> str:
        entries = ", ".join(f"{cid}: {o.value}" for cid, o in self._applied.items())
        return f"OrientationState({{{entries}}})"
