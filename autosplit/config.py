"""
autosplit Configuration

Resolved once at startup and never mutated afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Iterable, Optional, Tuple


def _matches_any(name: Optional[str], patterns: Iterable[str]) -> bool:
    if name is None:
        return False
    return any(fnmatchcase(name, pattern) for pattern in patterns)


@dataclass(frozen=True)
class Config:
    """Autosplit configuration."""

    # Shell-style globs, e.g. "9:*" or "HDMI-*"
    excluded_workspaces: Tuple[str, ...] = ()
    excluded_outputs: Tuple[str, ...] = ()

    # Only act on these workspaces (by name or number); empty means all
    workspaces: Tuple[str, ...] = ()

    skip_floating: bool = True
    skip_fullscreen: bool = True
    focused_output_only: bool = False

    # Vertical split once height/width reaches this ratio
    ratio: float = 1.0

    # Publish commands without sending them
    dry_run: bool = False

    def __post_init__(self):
        """Normalize pattern lists into tuples and validate the ratio."""
        for name in ("excluded_workspaces", "excluded_outputs", "workspaces"):
            value = getattr(self, name)
            if isinstance(value, str):
                value = (value,)
            object.__setattr__(self, name, tuple(str(v) for v in value))

        if not self.ratio > 0:
            raise ValueError(f"ratio must be positive, got {self.ratio}")

    def excludes_workspace(self, name: Optional[str]) -> bool:
        return _matches_any(name, self.excluded_workspaces)

    def excludes_output(self, name: Optional[str]) -> bool:
        return _matches_any(name, self.excluded_outputs)

    def allows_workspace(self, name: Optional[str]) -> bool:
        """Check a workspace against the allow-list.

        Entries match the full name or its number, so "9" allows "9:scratch".
        """
        if not self.workspaces:
            return True
        if name is None:
            return False
        number = name.split(":", 1)[0]
        return name in self.workspaces or number in self.workspaces
