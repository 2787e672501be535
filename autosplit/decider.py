"""
Orientation Decider

Pure decision rule: given a fresh tree snapshot, the event's target, the
configuration and the orientations already applied, decide whether the
target's split container needs a new orientation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .config import Config
from .state import OrientationState
from .tree import Node, NodeKind, Orientation, Tree, CONTAINER_KINDS, SPLIT_LAYOUTS


class SkipReason(Enum):
    """Why no command is issued."""

    NOT_FOUND = "not_found"
    NO_PARENT_CONTAINER = "no_parent_container"
    FLOATING = "floating"
    FULLSCREEN = "fullscreen"
    EXCLUDED = "excluded"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Apply:
    """Set the container's split orientation.

    ``child_id`` is the direct child of the container on the path to the
    target. The compositor applies ``layout`` to the parent of the container
    it matches, so commands address the container through this child.
    """

    container_id: int
    orientation: Orientation
    child_id: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True)
class Skip:
    """Leave the layout alone."""

    reason: SkipReason
    container_id: Optional[int] = None
    detail: str = ""


Decision = Union[Apply, Skip]


def orientation_for(node: Node, ratio: float = 1.0) -> Orientation:
    """Compute the split orientation from a rectangle.

    Vertical once height/width reaches ``ratio``. At the default ratio of 1
    wider-than-tall is horizontal and square is vertical.
    """
    if node.rect.height >= node.rect.width * ratio:
        return Orientation.VERTICAL
    return Orientation.HORIZONTAL


def _tiling_children(node: Node) -> list:
    return [child for child in node.children if not child.floating]


def split_container_of(tree: Tree, node: Node) -> Optional[Node]:
    """Find the nearest split container above a node.

    Tabbed and stacked containers are passed over. A workspace counts when
    its layout is a split and it tiles more than one child; the walk stops
    there either way.
    """
    for ancestor in tree.ancestors(node):
        if ancestor.kind is NodeKind.WORKSPACE:
            if ancestor.layout in SPLIT_LAYOUTS and len(_tiling_children(ancestor)) > 1:
                return ancestor
            return None
        if ancestor.kind not in CONTAINER_KINDS:
            return None
        if ancestor.is_split_container:
            return ancestor
    return None


def child_toward(tree: Tree, container: Node, node: Node) -> Node:
    """Get the direct child of ``container`` on the path down to ``node``."""
    current = node
    while current.parent_id != container.id:
        current = tree.parent(current)
    return current


def _exclusion(tree: Tree, container: Node, config: Config) -> Optional[str]:
    workspace = tree.workspace_of(container)
    output = tree.output_of(container)
    workspace_name = workspace.name if workspace else None
    output_name = output.name if output else None

    if config.excludes_workspace(workspace_name):
        return f"workspace {workspace_name!r} is excluded"
    if not config.allows_workspace(workspace_name):
        return f"workspace {workspace_name!r} is not enabled"
    if config.excludes_output(output_name):
        return f"output {output_name!r} is excluded"
    if config.focused_output_only:
        focused_output = tree.focused_output()
        if focused_output is None or output is None or focused_output.id != output.id:
            return f"output {output_name!r} is not focused"
    return None


def decide(
    tree: Tree,
    target_id: Optional[int],
    config: Config,
    state: Optional[OrientationState] = None,
) -> Decision:
    """Decide the split orientation for the container holding ``target_id``.

    Args:
        tree: Snapshot fetched for this decision
        target_id: Id of the new/focused window or container
        config: Startup configuration
        state: Orientations already applied; read only

    Returns:
        Apply or Skip
    """
    target = tree.find(target_id)
    if target is None:
        return Skip(SkipReason.NOT_FOUND, target_id)

    container = split_container_of(tree, target)
    if container is None:
        return Skip(SkipReason.NO_PARENT_CONTAINER, target_id)

    if config.skip_floating and (container.floating or target.floating):
        return Skip(SkipReason.FLOATING, container.id)

    if config.skip_fullscreen and target.is_fullscreen:
        return Skip(SkipReason.FULLSCREEN, container.id)

    excluded = _exclusion(tree, container, config)
    if excluded:
        return Skip(SkipReason.EXCLUDED, container.id, excluded)

    orientation = orientation_for(container, config.ratio)
    if state is not None and state.get(container.id) is orientation:
        return Skip(SkipReason.UNCHANGED, container.id)
    return Apply(container.id, orientation, child_toward(tree, container, target).id)
