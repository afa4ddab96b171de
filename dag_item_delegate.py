import math
from typing import Optional

from PyQt6.QtCore import QModelIndex, QPointF, QRectF, QSize, Qt
from PyQt6.QtGui import QColor, QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import QStyle, QStyledItemDelegate, QStyleOptionViewItem

from git_graph_data import EMPTY_LAYOUT, GraphLayout, GraphNode, ParentEdge, rail_color

RAIL_WIDTH = 16
GRAPH_PADDING = 12
COMMIT_RADIUS = 4
EDGE_THICKNESS = 2.0

Point = tuple[float, float]  # (column, y in row units; row centre is row + 0.5)


def graph_width(max_columns: int, rail_width: int = RAIL_WIDTH, padding: int = GRAPH_PADDING) -> int:
    """Pixel width needed for the graph column."""
    return padding * 2 + max(1, max_columns) * rail_width


def edge_polyline(node: GraphNode, edge: ParentEdge) -> list[Point]:
    """
    Path of one parent edge in graph coordinates.

    The line leaves the child, bends into its lane within the next row, runs
    straight down the lane and bends into the parent column within the row
    above the parent. Off-screen parents run down the lane to the bottom.
    """
    start = (float(node.column), node.row + 0.5)
    lane = edge.lane_column

    if edge.is_off_screen:
        lane = node.column if lane is None else lane
        points = [start]
        if lane != node.column:
            points.append((float(lane), min(node.row + 1.5, float(edge.row))))
        points.append((float(lane), float(edge.row)))
        return _dedupe(points)

    end = (float(edge.column), edge.row + 0.5)
    if lane is None or edge.row - node.row <= 1:
        return _dedupe([start, end])

    points = [start]
    if lane != node.column:
        points.append((float(lane), node.row + 1.5))
    points.append((float(lane), edge.row - 0.5))
    points.append(end)
    return _dedupe(points)


def _dedupe(points: list[Point]) -> list[Point]:
    result: list[Point] = []
    for point in points:
        if not result or result[-1] != point:
            result.append(point)
    return result


def rows_spanned(points: list[Point], total_rows: int) -> range:
    """Rows whose band [row, row + 1) the polyline passes through."""
    ys = [y for _, y in points]
    first = max(0, math.floor(min(ys)))
    last = min(total_rows, math.ceil(max(ys)))
    return range(first, last)


def build_row_index(layout: GraphLayout) -> dict[int, list[tuple[GraphNode, ParentEdge, list[Point]]]]:
    """Edges to draw in each row, so a row can be painted on its own."""
    row_index: dict[int, list[tuple[GraphNode, ParentEdge, list[Point]]]] = {}
    total_rows = len(layout)
    for node in layout.nodes:
        for edge in node.parent_edges:
            points = edge_polyline(node, edge)
            for row in rows_spanned(points, total_rows):
                row_index.setdefault(row, []).append((node, edge, points))
    return row_index


class DAGItemDelegate(QStyledItemDelegate):
    """Paints the commit graph into the first column, one row at a time."""

    def __init__(self, parent=None, row_height: int = 28, rail_width: int = RAIL_WIDTH):
        super().__init__(parent)
        self.row_height = row_height
        self.rail_width = rail_width
        self.left_margin = GRAPH_PADDING
        self.graph_layout: GraphLayout = EMPTY_LAYOUT
        self.row_index: dict[int, list[tuple[GraphNode, ParentEdge, list[Point]]]] = {}
        self.selected_hash: Optional[str] = None
        self.head_hash: Optional[str] = None

    def set_layout(self, layout: GraphLayout):
        self.graph_layout = layout
        self.row_index = build_row_index(layout)

    def set_selected_hash(self, commit_hash: Optional[str]):
        self.selected_hash = commit_hash

    def set_head_hash(self, commit_hash: Optional[str]):
        self.head_hash = commit_hash

    def graph_width(self) -> int:
        return graph_width(self.graph_layout.max_columns, self.rail_width, self.left_margin)

    def sizeHint(self, option: QStyleOptionViewItem, index: QModelIndex) -> QSize:
        return QSize(self.graph_width(), self.row_height)

    def _x(self, rect, column: float) -> float:
        return rect.left() + self.left_margin + column * self.rail_width + self.rail_width / 2

    def _y(self, rect, row: int, y: float) -> float:
        return rect.top() + (y - row) * rect.height()

    def paint(self, painter: QPainter, option: QStyleOptionViewItem, index: QModelIndex):
        row = index.row()
        if index.column() != 0 or row >= len(self.graph_layout):
            super().paint(painter, option, index)
            return

        # 选中行背景
        if option.state & QStyle.StateFlag.State_Selected:
            painter.fillRect(option.rect, option.palette.highlight())

        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setClipRect(option.rect)

        rect = QRectF(option.rect)
        for _node, edge, points in self.row_index.get(row, []):
            self._draw_edge(painter, rect, row, edge, points)

        self._draw_commit_circle(painter, rect, self.graph_layout[row])
        painter.restore()

    def _draw_edge(self, painter: QPainter, rect: QRectF, row: int, edge: ParentEdge, points: list[Point]):
        color = QColor(rail_color(edge.color_idx))
        pen = QPen(color, EDGE_THICKNESS, Qt.PenStyle.SolidLine, Qt.PenCapStyle.RoundCap, Qt.PenJoinStyle.RoundJoin)
        if edge.is_off_screen:
            pen.setStyle(Qt.PenStyle.DashLine)
            color.setAlphaF(0.5)
            pen.setColor(color)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)

        path = QPainterPath()
        x0, y0 = points[0]
        path.moveTo(QPointF(self._x(rect, x0), self._y(rect, row, y0)))
        for x1, y1 in points[1:]:
            sx, sy = self._x(rect, x0), self._y(rect, row, y0)
            ex, ey = self._x(rect, x1), self._y(rect, row, y1)
            if x0 == x1:
                path.lineTo(QPointF(ex, ey))
            else:
                # vertical tangents at both ends
                mid_y = (sy + ey) / 2
                path.cubicTo(QPointF(sx, mid_y), QPointF(ex, mid_y), QPointF(ex, ey))
            x0, y0 = x1, y1
        painter.drawPath(path)

    def _draw_commit_circle(self, painter: QPainter, rect: QRectF, node: GraphNode):
        color = QColor(node.color)
        center = QPointF(self._x(rect, node.column), rect.center().y())
        radius = COMMIT_RADIUS + 1 if node.hash == self.selected_hash else COMMIT_RADIUS

        if node.is_merge:
            # 合并提交画成空心圆
            painter.setBrush(QColor(Qt.GlobalColor.white))
            painter.setPen(QPen(color, EDGE_THICKNESS))
        else:
            painter.setBrush(color)
            painter.setPen(QPen(color.darker(130), 1))
        painter.drawEllipse(center, radius, radius)

        if node.hash == self.head_hash:
            # HEAD: 白色描边再套一圈分支颜色
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.setPen(QPen(QColor(Qt.GlobalColor.white), 2))
            painter.drawEllipse(center, radius + 1, radius + 1)
            painter.setPen(QPen(color, 1.5))
            painter.drawEllipse(center, radius + 2.5, radius + 2.5)
            radius += 2

        if node.hash == self.selected_hash:
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.setPen(QPen(QColor(Qt.GlobalColor.black), 1))
            painter.drawEllipse(center, radius + 2, radius + 2)
