import unittest

from dag_item_delegate import DAGItemDelegate, build_row_index, edge_polyline, graph_width, rows_spanned
from git_graph_data import EMPTY_LAYOUT, Commit
from git_graph_layout import layout_commits


def c(sha, *parents):
    return Commit(hash=sha, parent_hashes=parents)


class TestEdgePolyline(unittest.TestCase):
    def setUp(self):
        self.layout = layout_commits([c("C3", "C2"), c("C2", "C1", "C0"), c("C1"), c("C0")])

    def _points(self, layout, child, parent):
        node = layout.node_for(child)
        edge = next(e for e in node.parent_edges if e.parent_hash == parent)
        return edge_polyline(node, edge)

    def test_adjacent_rows_are_a_single_segment(self):
        self.assertEqual(self._points(self.layout, "C3", "C2"), [(0.0, 0.5), (0.0, 1.5)])

    def test_merge_edge_bends_into_its_lane(self):
        self.assertEqual(self._points(self.layout, "C2", "C0"), [(0.0, 1.5), (1.0, 2.5), (1.0, 3.5)])

    def test_long_edge_runs_down_the_lane(self):
        layout = layout_commits([c("M", "A", "B"), c("A", "base"), c("B", "base"), c("base")])
        self.assertEqual(self._points(layout, "M", "B"), [(0.0, 0.5), (1.0, 1.5), (1.0, 2.5)])
        self.assertEqual(self._points(layout, "B", "base"), [(1.0, 2.5), (0.0, 3.5)])
        self.assertEqual(self._points(layout, "A", "base"), [(0.0, 1.5), (0.0, 2.5), (0.0, 3.5)])

    def test_off_screen_edge_ends_at_the_bottom(self):
        layout = layout_commits([c("A", "B"), c("X", "Y")])
        self.assertEqual(self._points(layout, "A", "B"), [(0.0, 0.5), (0.0, 2.0)])
        self.assertEqual(self._points(layout, "X", "Y"), [(1.0, 1.5), (1.0, 2.0)])

    def test_edge_back_to_an_earlier_row(self):
        layout = layout_commits([c("P"), c("C", "P")])
        self.assertEqual(self._points(layout, "C", "P"), [(0.0, 1.5), (0.0, 0.5)])


class TestRowIndex(unittest.TestCase):
    def test_rows_spanned(self):
        self.assertEqual(rows_spanned([(0.0, 0.5), (0.0, 1.5)], 4), range(0, 2))
        self.assertEqual(rows_spanned([(0.0, 1.5), (1.0, 2.5), (1.0, 3.5)], 4), range(1, 4))
        self.assertEqual(rows_spanned([(0.0, 0.5), (0.0, 1.0)], 1), range(0, 1))

    def test_each_row_knows_its_edges(self):
        layout = layout_commits([c("C3", "C2"), c("C2", "C1", "C0"), c("C1"), c("C0")])
        row_index = build_row_index(layout)

        def parents_in(row):
            return sorted((node.hash, edge.parent_hash) for node, edge, _ in row_index.get(row, []))

        self.assertEqual(parents_in(0), [("C3", "C2")])
        self.assertEqual(parents_in(1), [("C2", "C0"), ("C2", "C1"), ("C3", "C2")])
        self.assertEqual(parents_in(2), [("C2", "C0"), ("C2", "C1")])
        self.assertEqual(parents_in(3), [("C2", "C0")])

    def test_empty_layout(self):
        self.assertEqual(build_row_index(EMPTY_LAYOUT), {})


class TestGraphWidth(unittest.TestCase):
    def test_width_grows_with_columns(self):
        self.assertEqual(graph_width(2), 12 * 2 + 2 * 16)
        self.assertEqual(graph_width(0), graph_width(1))
        self.assertEqual(graph_width(3, rail_width=10, padding=5), 40)

    def test_delegate_tracks_layout(self):
        delegate = DAGItemDelegate(rail_width=10)
        narrow = delegate.graph_width()
        layout = layout_commits([c("A", "root"), c("B", "root"), c("root")])
        delegate.set_layout(layout)
        self.assertIs(delegate.graph_layout, layout)
        self.assertGreater(delegate.graph_width(), narrow)
        self.assertIn(1, delegate.row_index)

    def test_head_and_selection_markers(self):
        delegate = DAGItemDelegate()
        self.assertIsNone(delegate.head_hash)
        delegate.set_head_hash("A")
        delegate.set_selected_hash("B")
        self.assertEqual((delegate.head_hash, delegate.selected_hash), ("A", "B"))


if __name__ == "__main__":
    unittest.main()
