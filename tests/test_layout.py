"""Tests for layout dispatch and the layout algorithms."""

import math

import pytest

from drawio_core import (
    Graph,
    InvalidDirectionError,
    InvalidInputError,
    LAYOUTS,
    UnsupportedAlgorithmError,
    apply_layout,
)


def _geometries(graph):
    return {c.id: c.geometry.model_dump() for c in graph if c.geometry is not None}


def _tree():
    """a -> b, a -> c, all 120x60 rectangles."""
    g = Graph()
    for node_id in ("a", "b", "c"):
        g.add_node(node_id, node_id.upper(), x=500, y=500)
    g.link_nodes("a", "b")
    g.link_nodes("a", "c")
    return g


class TestDispatch:
    """Tests for request validation."""

    def test_all_algorithms_registered(self):
        assert set(LAYOUTS) == {
            "hierarchical", "circle", "organic", "compact-tree",
            "radial-tree", "partition", "stack",
        }

    def test_unsupported_algorithm_names_allowed_set(self):
        graph = _tree()
        with pytest.raises(UnsupportedAlgorithmError) as exc_info:
            apply_layout(graph, "spiral")

        message = str(exc_info.value)
        assert "spiral" in message
        assert "hierarchical" in message
        assert "radial-tree" in message

    def test_invalid_direction_moves_nothing(self):
        graph = _tree()
        before = _geometries(graph)

        with pytest.raises(InvalidDirectionError, match="diagonal"):
            apply_layout(graph, "hierarchical", {"direction": "diagonal"})

        assert _geometries(graph) == before

    def test_unknown_option_rejected(self):
        graph = _tree()
        before = _geometries(graph)

        with pytest.raises(InvalidInputError, match="direction"):
            apply_layout(graph, "circle", {"direction": "top-down"})

        assert _geometries(graph) == before

    def test_none_direction_uses_default(self):
        graph = _tree()
        apply_layout(graph, "hierarchical", {"direction": None})
        assert graph.get_cell("a").geometry.y == 0

    @pytest.mark.parametrize("algorithm", sorted(LAYOUTS))
    def test_empty_graph_is_noop(self, algorithm):
        graph = Graph()
        assert apply_layout(graph, algorithm) == []

    @pytest.mark.parametrize("algorithm", sorted(LAYOUTS))
    def test_edges_keep_relative_geometry(self, algorithm):
        graph = _tree()
        apply_layout(graph, algorithm)

        for edge in graph.edges():
            assert edge.geometry.relative is True
            assert edge.geometry.x == 0
            assert edge.geometry.y == 0

    @pytest.mark.parametrize("algorithm", sorted(LAYOUTS))
    def test_nested_nodes_not_moved(self, algorithm):
        graph = _tree()
        graph.add_node("inner", parent="a", x=3, y=4)

        apply_layout(graph, algorithm)

        assert graph.get_cell("inner").geometry.bounds() == (3, 4, 123, 64)


class TestHierarchical:
    """Tests for the layered layout."""

    def test_top_down(self):
        graph = _tree()
        apply_layout(graph, "hierarchical")

        a, b, c = (graph.get_cell(i).geometry for i in "abc")
        assert (a.x, a.y) == (75, 0)
        assert (b.x, b.y) == (0, 160)
        assert (c.x, c.y) == (150, 160)

    def test_left_right(self):
        graph = _tree()
        apply_layout(graph, "hierarchical", {"direction": "left-right"})

        a, b, c = (graph.get_cell(i).geometry for i in "abc")
        assert a.x == 0
        assert b.x == c.x == 220
        assert b.y != c.y

    def test_cycle_terminates(self):
        graph = Graph()
        graph.add_node("a")
        graph.add_node("b")
        graph.link_nodes("a", "b")
        graph.link_nodes("b", "a")

        apply_layout(graph, "hierarchical")

        assert graph.get_cell("a").geometry.y == 0
        assert graph.get_cell("b").geometry.y == 160

    def test_longest_path_rank(self):
        graph = Graph()
        for node_id in "abc":
            graph.add_node(node_id)
        graph.link_nodes("a", "b")
        graph.link_nodes("b", "c")
        graph.link_nodes("a", "c")

        apply_layout(graph, "hierarchical")

        assert graph.get_cell("c").geometry.y == 320


class TestOtherLayouts:
    """Tests for circle, organic, tree, partition and stack layouts."""

    def test_circle_positions_distinct_and_equidistant(self):
        graph = _tree()
        apply_layout(graph, "circle")

        centers = [graph.get_cell(i).geometry.center() for i in "abc"]
        assert len(set(centers)) == 3
        cx = sum(p[0] for p in centers) / 3
        cy = sum(p[1] for p in centers) / 3
        distances = [math.hypot(p[0] - cx, p[1] - cy) for p in centers]
        assert max(distances) - min(distances) < 0.1

    def test_organic_is_deterministic(self):
        first, second = _tree(), _tree()
        apply_layout(first, "organic")
        apply_layout(second, "organic")

        assert _geometries(first) == _geometries(second)
        for cell in first.vertices():
            assert math.isfinite(cell.geometry.x)
            assert cell.geometry.x >= 0
            assert cell.geometry.y >= 0

    def test_organic_separates_nodes(self):
        graph = _tree()
        apply_layout(graph, "organic")

        b = graph.get_cell("b").geometry.center()
        c = graph.get_cell("c").geometry.center()
        assert math.hypot(b[0] - c[0], b[1] - c[1]) > 50

    def test_compact_tree_centres_parent(self):
        graph = _tree()
        apply_layout(graph, "compact-tree")

        a, b, c = (graph.get_cell(i).geometry for i in "abc")
        assert (b.x, b.y) == (0, 120)
        assert (c.x, c.y) == (150, 120)
        assert (a.x, a.y) == (75, 0)

    def test_compact_tree_wide_parent_does_not_overlap(self):
        graph = Graph()
        graph.add_node("leaf")
        graph.add_node("root2", width=400)
        graph.add_node("child")
        graph.link_nodes("root2", "child")

        apply_layout(graph, "compact-tree")

        leaf = graph.get_cell("leaf").geometry
        root2 = graph.get_cell("root2").geometry
        assert root2.x >= leaf.x + leaf.width

    def test_radial_tree_children_on_one_circle(self):
        graph = _tree()
        apply_layout(graph, "radial-tree")

        root = graph.get_cell("a").geometry.center()
        for child in "bc":
            center = graph.get_cell(child).geometry.center()
            assert math.hypot(center[0] - root[0], center[1] - root[1]) == pytest.approx(160, abs=0.1)

    def test_partition_resizes(self):
        graph = Graph()
        graph.add_node("a", x=0, y=0)
        graph.add_node("b", x=0, y=0, height=100)
        graph.add_node("c", x=0, y=0)

        apply_layout(graph, "partition")

        geometries = [graph.get_cell(i).geometry for i in "abc"]
        assert [g.height for g in geometries] == [100, 100, 100]
        assert len({g.width for g in geometries}) == 1
        assert [g.x for g in geometries] == sorted(g.x for g in geometries)
        assert geometries[0].x + geometries[0].width <= geometries[1].x

    def test_stack(self):
        graph = _tree()
        graph.add_node("d", kind="actor")

        apply_layout(graph, "stack")

        xs = [graph.get_cell(i).geometry.x for i in "abcd"]
        assert xs == [0, 140, 280, 420]
        assert all(graph.get_cell(i).geometry.y == 0 for i in "abcd")


class TestDeepTrees:
    """Tree layouts on chains deeper than the interpreter's recursion limit."""

    DEPTH = 1200

    def _chain(self):
        graph = Graph()
        for i in range(self.DEPTH):
            graph.add_node(f"n{i}")
        for i in range(1, self.DEPTH):
            graph.link_nodes(f"n{i - 1}", f"n{i}")
        return graph

    def test_compact_tree_long_chain(self):
        graph = self._chain()

        apply_layout(graph, "compact-tree")

        for i in (0, 1, self.DEPTH - 1):
            geometry = graph.get_cell(f"n{i}").geometry
            assert (geometry.x, geometry.y) == (0, 120 * i)

    def test_radial_tree_long_chain(self):
        graph = self._chain()

        apply_layout(graph, "radial-tree")

        last = self.DEPTH - 1
        assert graph.get_cell("n0").geometry.x == pytest.approx(160 * last)
        assert graph.get_cell(f"n{last}").geometry.x == pytest.approx(0)
        assert len({graph.get_cell(f"n{i}").geometry.y for i in range(self.DEPTH)}) == 1
