"""
Compositor Layout Tree

In-memory model of a GET_TREE snapshot.

The ``Tree`` owns every ``Node`` of one snapshot. Nodes keep only their
parent's id; parents are resolved through the tree's index, so a snapshot has
no reference cycles and can be dropped as a whole.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from .errors import ProtocolError
from .protocol import MessageType, Rect

if TYPE_CHECKING:
    from .connection import IPCConnection


class NodeKind(Enum):
    """Node type as reported by the compositor."""

    ROOT = "root"
    OUTPUT = "output"
    WORKSPACE = "workspace"
    CON = "con"
    FLOATING_CON = "floating_con"
    DOCKAREA = "dockarea"


class Layout(Enum):
    """Container layout."""

    SPLITH = "splith"
    SPLITV = "splitv"
    STACKED = "stacked"
    TABBED = "tabbed"
    OUTPUT = "output"
    DOCKAREA = "dockarea"
    NONE = "none"


class Orientation(Enum):
    """Split orientation."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    NONE = "none"

    @property
    def layout(self) -> Layout:
        """Split layout that arranges children in this orientation."""
        if self is Orientation.HORIZONTAL:
            return Layout.SPLITH
        if self is Orientation.VERTICAL:
            return Layout.SPLITV
        raise ValueError("Orientation NONE has no split layout")


SPLIT_LAYOUTS = (Layout.SPLITH, Layout.SPLITV)
CONTAINER_KINDS = (NodeKind.CON, NodeKind.FLOATING_CON)


@dataclass
class Node:
    """A container, window, workspace, output or the root."""

    id: int
    kind: NodeKind
    name: Optional[str] = None
    rect: Rect = field(default_factory=Rect)
    layout: Layout = Layout.NONE
    orientation: Orientation = Orientation.NONE
    floating: bool = False
    focused: bool = False
    fullscreen_mode: int = 0
    children: List["Node"] = field(default_factory=list, repr=False)
    parent_id: Optional[int] = None

    @property
    def is_window(self) -> bool:
        return self.kind in CONTAINER_KINDS and not self.children

    @property
    def is_split_container(self) -> bool:
        return self.kind in CONTAINER_KINDS and self.layout in SPLIT_LAYOUTS

    @property
    def is_fullscreen(self) -> bool:
        return self.fullscreen_mode != 0


def _enum_field(data: dict, key: str, enum_cls, default):
    raw = data.get(key)
    if raw is None:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        raise ProtocolError(f"Unknown {key} {raw!r} on node {data.get('id')}")


def _int_field(data: dict, key: str, default: Optional[int] = None) -> int:
    value = data.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ProtocolError(f"Field {key!r} must be an integer, got {value!r}")
    return value


def _parse_rect(data: Any) -> Rect:
    if not isinstance(data, dict):
        raise ProtocolError(f"Malformed rect: {data!r}")
    return Rect(
        x=_int_field(data, "x", 0),
        y=_int_field(data, "y", 0),
        width=_int_field(data, "width"),
        height=_int_field(data, "height"),
    )


def parse_node(data: Any, parent_id: Optional[int] = None) -> Node:
    """Parse a single node object, without its children."""
    if not isinstance(data, dict):
        raise ProtocolError(f"Tree node must be an object, got {type(data).__name__}")
    if data.get("type") is None:
        raise ProtocolError(f"Node {data.get('id')} has no type")
    if "rect" not in data:
        raise ProtocolError(f"Node {data.get('id')} has no rect")

    kind = _enum_field(data, "type", NodeKind, None)
    floating = data.get("floating")
    return Node(
        id=_int_field(data, "id"),
        kind=kind,
        name=data.get("name"),
        rect=_parse_rect(data["rect"]),
        layout=_enum_field(data, "layout", Layout, Layout.NONE),
        orientation=_enum_field(data, "orientation", Orientation, Orientation.NONE),
        # sway marks floating containers by type, i3 by the "floating" field
        floating=kind is NodeKind.FLOATING_CON
        or (isinstance(floating, str) and floating.endswith("_on")),
        focused=data.get("focused") is True,
        fullscreen_mode=_int_field(data, "fullscreen_mode", 0),
        parent_id=parent_id,
    )


class Tree:
    """One snapshot of the compositor layout tree."""

    def __init__(self, root: Node, index: Dict[int, Node]):
        self.root = root
        self._index = index

    @classmethod
    def from_json(cls, data: Any) -> "Tree":
        """Build a tree from a GET_TREE reply in a single pass.

        Raises:
            ProtocolError: If the payload is not a well-formed tree
        """
        index: Dict[int, Node] = {}

        def build(node_data: Any, parent_id: Optional[int]) -> Node:
            node = parse_node(node_data, parent_id)
            if node.id in index:
                raise ProtocolError(f"Duplicate node id {node.id}")
            if parent_id is not None and node.kind is NodeKind.ROOT:
                raise ProtocolError(f"Nested root node {node.id}")
            index[node.id] = node

            for key in ("nodes", "floating_nodes"):
                children = node_data.get(key) or []
                if not isinstance(children, list):
                    raise ProtocolError(f"Field {key!r} of node {node.id} is not a list")
                for child_data in children:
                    node.children.append(build(child_data, node.id))
            return node

        root = build(data, None)
        if root.kind is not NodeKind.ROOT:
            raise ProtocolError(f"Tree root has type {root.kind.value!r}")
        return cls(root, index)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._index.values())

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._index

    def ids(self) -> set:
        """Ids of every node in the snapshot."""
        return set(self._index)

    def find(self, node_id: Optional[int]) -> Optional[Node]:
        """Look up a node by id."""
        if node_id is None:
            return None
        return self._index.get(node_id)

    def parent(self, node: Node) -> Optional[Node]:
        """Get the parent of a node, or None for the root."""
        return self.find(node.parent_id)

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Yield the ancestors of a node, nearest first."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def _ancestor_of_kind(self, node: Node, kind: NodeKind) -> Optional[Node]:
        if node.kind is kind:
            return node
        for ancestor in self.ancestors(node):
            if ancestor.kind is kind:
                return ancestor
        return None

    def workspace_of(self, node: Node) -> Optional[Node]:
        """Get the workspace containing a node."""
        return self._ancestor_of_kind(node, NodeKind.WORKSPACE)

    def output_of(self, node: Node) -> Optional[Node]:
        """Get the output containing a node."""
        return self._ancestor_of_kind(node, NodeKind.OUTPUT)

    def focused(self) -> Optional[Node]:
        """Get the focused node, if any."""
        for node in self._index.values():
            if node.focused:
                return node
        return None

    def focused_output(self) -> Optional[Node]:
        """Get the output holding the focused node."""
        focused = self.focused()
        return self.output_of(focused) if focused else None


def get_tree(connection: "IPCConnection") -> Tree:
    """Fetch a fresh tree snapshot from the compositor.

    Raises:
        TransportError: On socket failure
        ProtocolError: On a malformed payload
    """
    return Tree.from_json(connection.send_request(MessageType.GET_TREE))
