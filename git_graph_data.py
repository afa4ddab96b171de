# git_graph_data.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Rail colors, cycled by the layout engine's color counter
RAIL_COLORS = [
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
]


def rail_color(color_idx: int) -> str:
    """Hex color for a palette index (wraps around)."""
    return RAIL_COLORS[color_idx % len(RAIL_COLORS)]


@dataclass(frozen=True)
class Commit:
    hash: str
    parent_hashes: tuple[str, ...] = ()
    author_name: str = ""
    author_email: str = ""
    timestamp: int = 0
    summary: str = ""
    short_hash: str = ""

    def __post_init__(self):
        # Accept any sequence of parents but store a tuple so commits stay hashable
        object.__setattr__(self, "parent_hashes", tuple(self.parent_hashes))
        if not self.short_hash:
            object.__setattr__(self, "short_hash", self.hash[:7])

    def __repr__(self) -> str:
        return f"Commit(hash='{self.short_hash}', parents={[p[:7] for p in self.parent_hashes]}, summary='{self.summary[:20]}')"


class ConnectionType(str, Enum):
    STRAIGHT = "straight"
    MERGE_LEFT = "mergeLeft"
    MERGE_RIGHT = "mergeRight"

    @classmethod
    def between(cls, from_column: int, to_column: int) -> "ConnectionType":
        if from_column == to_column:
            return cls.STRAIGHT
        if to_column < from_column:
            return cls.MERGE_LEFT
        return cls.MERGE_RIGHT


@dataclass(frozen=True)
class ParentEdge:
    """Line from a node toward one of its parents.

    lane_column is the rail that carries the line below the child row.
    column/row are the parent's resolved position; for a parent outside the
    loaded range they point at the bottom of the lane instead.
    """

    parent_hash: str
    column: int
    row: int
    color_idx: int
    lane_column: Optional[int] = None
    connection: ConnectionType = ConnectionType.STRAIGHT
    is_off_screen: bool = False


@dataclass(frozen=True)
class GraphNode:
    commit: Commit
    row: int
    column: int
    color_idx: int
    parent_edges: tuple[ParentEdge, ...] = ()

    @property
    def hash(self) -> str:
        return self.commit.hash

    @property
    def is_merge(self) -> bool:
        return len(self.commit.parent_hashes) > 1

    @property
    def is_root(self) -> bool:
        return not self.commit.parent_hashes

    @property
    def color(self) -> str:
        return rail_color(self.color_idx)

    def __repr__(self) -> str:
        return (
            f"GraphNode(sha='{self.commit.short_hash}', row={self.row}, "
            f"column={self.column}, color_idx={self.color_idx}, "
            f"parents={[e.parent_hash[:7] for e in self.parent_edges]})"
        )


@dataclass(frozen=True)
class GraphLayout:
    nodes: tuple[GraphNode, ...] = ()
    max_columns: int = 0
    _index: dict[str, GraphNode] = field(default_factory=dict, repr=False, compare=False)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def __getitem__(self, row: int) -> GraphNode:
        return self.nodes[row]

    def node_for(self, commit_hash: str) -> Optional[GraphNode]:
        """Node lookup by hash, used for selection highlighting."""
        return self._index.get(commit_hash)

    def row_for(self, commit_hash: str) -> Optional[int]:
        node = self._index.get(commit_hash)
        return node.row if node is not None else None

    def __contains__(self, commit_hash: str) -> bool:
        return commit_hash in self._index


EMPTY_LAYOUT = GraphLayout()
