# git_graph_layout.py

from typing import Optional, Sequence

from git_graph_data import EMPTY_LAYOUT, RAIL_COLORS, Commit, ConnectionType, GraphLayout, GraphNode, ParentEdge


class Rail:
    """A lane in the graph, waiting for the next commit of its lineage."""

    __slots__ = ("id", "column", "color_idx", "awaited_hash")

    def __init__(self, rail_id: int, column: int, color_idx: int, awaited_hash: Optional[str]):
        self.id = rail_id
        self.column = column
        self.color_idx = color_idx
        self.awaited_hash = awaited_hash

    @property
    def is_free(self) -> bool:
        return self.awaited_hash is None

    def __repr__(self) -> str:
        awaited = self.awaited_hash[:7] if self.awaited_hash else None
        return f"Rail(id={self.id}, column={self.column}, color_idx={self.color_idx}, awaited={awaited})"


class RailTable:
    """Column slots for one layout pass.

    A slot holds an active rail or None. Rails never move to another column
    while active; freed slots are reused lowest column first and trailing free
    slots are dropped, so the slots always cover a dense [0, width) range.
    """

    def __init__(self, palette_size: int = len(RAIL_COLORS)):
        self.palette_size = max(1, palette_size)
        self._slots: list[Optional[Rail]] = []
        self._previous_color: dict[int, int] = {}  # column -> color of its last occupant
        self._color_counter = 0
        self._next_rail_id = 0
        self._active_count = 0
        self.peak = 0

    @property
    def width(self) -> int:
        return len(self._slots)

    @property
    def active_count(self) -> int:
        return self._active_count

    def active_rails(self) -> list[Rail]:
        return [rail for rail in self._slots if rail is not None]

    def awaiting(self, commit_hash: str) -> list[Rail]:
        """Rails waiting for commit_hash, lowest column first."""
        return [rail for rail in self._slots if rail is not None and rail.awaited_hash == commit_hash]

    def rail_awaiting(self, commit_hash: str) -> Optional[Rail]:
        for rail in self._slots:
            if rail is not None and rail.awaited_hash == commit_hash:
                return rail
        return None

    def allocate(self, awaited_hash: str) -> Rail:
        column = self._free_column()
        rail = Rail(self._next_rail_id, column, self._next_color(column), awaited_hash)
        self._next_rail_id += 1
        if column == len(self._slots):
            self._slots.append(rail)
        else:
            self._slots[column] = rail
        self._active_count += 1
        self.peak = max(self.peak, self._active_count)
        return rail

    def free(self, rail: Rail):
        if rail.column >= len(self._slots) or self._slots[rail.column] is not rail:
            return
        rail.awaited_hash = None
        self._slots[rail.column] = None
        self._previous_color[rail.column] = rail.color_idx
        self._active_count -= 1
        while self._slots and self._slots[-1] is None:
            self._slots.pop()

    def _free_column(self) -> int:
        for column, rail in enumerate(self._slots):
            if rail is None:
                return column
        return len(self._slots)

    def _next_color(self, column: int) -> int:
        color_idx = self._color_counter % self.palette_size
        # A reused column must not repeat the color of the lineage that just left it
        if self.palette_size > 1 and self._previous_color.get(column) == color_idx:
            self._color_counter += 1
            color_idx = self._color_counter % self.palette_size
        self._color_counter += 1
        return color_idx


def layout_commits(commits: Sequence[Commit], palette_size: int = len(RAIL_COLORS)) -> GraphLayout:
    """
    Assigns a row, a rail column and a color index to every commit.

    `commits` must be in reverse topological order (children before their
    parents), as produced by `git log --topo-order`. Row i is commits[i].
    The first parent continues the child's rail; extra parents of a merge get
    their own rail unless one already waits for them. When several rails wait
    for the same commit, the lowest column survives and the others are freed.

    Parents that never show up (history cut off by pagination) keep their rail
    until the end and their edges are marked off-screen. A parent that was
    already placed above its child breaks the ordering precondition; it is
    ignored for rail purposes and its edge points back up to it.

    The function holds no state between calls.
    """
    if not commits:
        return EMPTY_LAYOUT

    rails = RailTable(palette_size)
    placements: list[tuple[int, int]] = []  # row -> (column, color_idx)
    lanes_by_row: list[list[Optional[tuple[int, int]]]] = []  # row -> per parent (lane column, color_idx)
    placed_rows: dict[str, int] = {}

    for row, commit in enumerate(commits):
        waiting = rails.awaiting(commit.hash)
        if waiting:
            rail = waiting[0]
            for converged in waiting[1:]:
                rails.free(converged)
        else:
            rail = rails.allocate(commit.hash)

        placements.append((rail.column, rail.color_idx))
        placed_rows.setdefault(commit.hash, row)

        lanes: list[Optional[tuple[int, int]]] = []
        parents = commit.parent_hashes
        if not parents or parents[0] in placed_rows:
            rails.free(rail)
        else:
            rail.awaited_hash = parents[0]
        if parents:
            lanes.append(None if parents[0] in placed_rows else (rail.column, rail.color_idx))

        for parent_hash in parents[1:]:
            if parent_hash in placed_rows:
                lanes.append(None)
                continue
            tracking = rails.rail_awaiting(parent_hash)
            if tracking is None:
                tracking = rails.allocate(parent_hash)
            lanes.append((tracking.column, tracking.color_idx))

        lanes_by_row.append(lanes)

    nodes = []
    index: dict[str, GraphNode] = {}
    total_rows = len(commits)
    for row, commit in enumerate(commits):
        column, color_idx = placements[row]
        edges = tuple(
            _resolve_edge(parent_hash, lane, row, column, color_idx, placed_rows, placements, total_rows)
            for parent_hash, lane in zip(commit.parent_hashes, lanes_by_row[row])
        )
        node = GraphNode(commit=commit, row=row, column=column, color_idx=color_idx, parent_edges=edges)
        nodes.append(node)
        index.setdefault(commit.hash, node)

    return GraphLayout(nodes=tuple(nodes), max_columns=rails.peak, _index=index)


def _resolve_edge(
    parent_hash: str,
    lane: Optional[tuple[int, int]],
    row: int,
    column: int,
    color_idx: int,
    placed_rows: dict[str, int],
    placements: list[tuple[int, int]],
    total_rows: int,
) -> ParentEdge:
    parent_row = placed_rows.get(parent_hash)

    if lane is None:
        # Parent sits above its child; draw straight back to it
        parent_column = placements[parent_row][0]
        return ParentEdge(
            parent_hash=parent_hash,
            column=parent_column,
            row=parent_row,
            color_idx=color_idx,
            lane_column=None,
            connection=ConnectionType.between(column, parent_column),
        )

    lane_column, lane_color = lane
    if parent_row is None:
        return ParentEdge(
            parent_hash=parent_hash,
            column=lane_column,
            row=total_rows,
            color_idx=lane_color,
            lane_column=lane_column,
            connection=ConnectionType.between(column, lane_column),
            is_off_screen=True,
        )

    parent_column = placements[parent_row][0]
    return ParentEdge(
        parent_hash=parent_hash,
        column=parent_column,
        row=parent_row,
        color_idx=lane_color,
        lane_column=lane_column,
        connection=ConnectionType.between(column, parent_column),
    )
