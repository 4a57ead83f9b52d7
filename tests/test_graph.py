"""Tests for diagram graph mutations."""

import pytest

from drawio_core import (
    CellNotFoundError,
    Graph,
    InvalidInputError,
    Kind,
    KINDS,
    to_xml,
)


class TestGraphBasics:
    """Tests for an empty graph and lookups."""

    def test_new_graph_has_root_and_layer(self, graph):
        assert [c.id for c in graph] == ["0", "1"]
        assert graph.get_cell("1").parent == "0"
        assert graph.stats().node_count == 0
        assert graph.stats().edge_count == 0

    def test_bounds_of_empty_graph(self, graph):
        assert graph.bounds() == (0, 0, 0, 0)

    def test_bounds(self, linked_graph):
        assert linked_graph.bounds() == (0, 0, 320, 60)


class TestAddNode:
    """Tests for Graph.add_node."""

    def test_defaults(self, graph):
        node = graph.add_node("n1", "Hello")

        assert node.vertex is True
        assert node.parent == "1"
        assert node.value == "Hello"
        assert node.kind is Kind.RECTANGLE
        assert node.style == "rounded=1;whiteSpace=wrap;html=1;"
        assert node.geometry.bounds() == (10, 10, 130, 70)

    def test_kind_sets_default_size(self, graph):
        node = graph.add_node("db", "DB", kind="cylinder", x=5, y=6)

        assert node.geometry.width == 60
        assert node.geometry.height == 80
        assert node.style == KINDS[Kind.CYLINDER].style

    def test_kind_is_case_insensitive(self, graph):
        assert graph.add_node("c", kind="Cloud").kind is Kind.CLOUD
        assert graph.add_node("e", kind="Elipse").kind is Kind.ELLIPSE

    def test_unknown_kind(self, graph):
        with pytest.raises(InvalidInputError, match="hexagon"):
            graph.add_node("n1", kind="hexagon")
        assert "n1" not in graph

    def test_missing_id(self, graph):
        with pytest.raises(InvalidInputError):
            graph.add_node("", "No id")

    @pytest.mark.parametrize("reserved", ["0", "1"])
    def test_structural_ids_rejected(self, graph, reserved):
        with pytest.raises(InvalidInputError, match="reserved"):
            graph.add_node(reserved, "First")

        assert graph.get_cell("1").vertex is False
        assert graph.get_cell("1").parent == "0"
        assert graph.add_node("2", "Second").parent == "1"

    def test_size_overrides(self, graph):
        node = graph.add_node("n1", width=300, height=40)
        assert (node.geometry.width, node.geometry.height) == (300, 40)

    def test_style_overrides_merge_on_top(self, graph):
        node = graph.add_node("n1", kind="ellipse", style={"fillColor": "#ff0000", "html": None})
        assert node.style == "ellipse;whiteSpace=wrap;html=1;fillColor=#ff0000;"

    def test_string_style_override(self, graph):
        node = graph.add_node("n1", style="rounded=0;dashed=1;")
        assert node.style_dict()["rounded"] == "0"
        assert node.style_dict()["dashed"] == "1"

    def test_corner_radius_is_doubled(self, graph):
        node = graph.add_node("n1", kind="rounded-rectangle", corner_radius=5)

        style = node.style_dict()
        assert style["absoluteArcSize"] == "1"
        assert style["arcSize"] == "10"

    @pytest.mark.parametrize("radius", [0, 0.5, -3])
    def test_small_corner_radius_uses_default(self, graph, radius):
        node = graph.add_node("n1", kind="rounded-rectangle", corner_radius=radius)
        assert node.style_dict()["arcSize"] == "24"

    def test_corner_radius_ignored_for_other_kinds(self, graph):
        node = graph.add_node("n1", kind="rectangle", corner_radius=5)
        assert "arcSize" not in node.style_dict()

    def test_nested_parent(self, graph):
        graph.add_node("group", "Group", width=400, height=300)
        child = graph.add_node("child", "Child", parent="group")

        assert child.parent == "group"
        assert [c.id for c in graph.children("group")] == ["child"]

    def test_missing_parent(self, graph):
        with pytest.raises(CellNotFoundError, match="nope"):
            graph.add_node("child", parent="nope")
        assert "child" not in graph

    def test_duplicate_id_overwrites(self, graph):
        graph.add_node("n1", "First")
        graph.add_node("other")
        graph.add_node("n1", "Second", kind="circle")

        assert graph.stats().node_count == 2
        assert graph.get_cell("n1").value == "Second"
        # Overwritten cell keeps its place in storage order
        assert [c.id for c in graph.vertices()] == ["n1", "other"]


class TestEditNode:
    """Tests for Graph.edit_node."""

    def test_missing_node_leaves_graph_unchanged(self, linked_graph):
        before = to_xml(linked_graph)

        with pytest.raises(CellNotFoundError, match="missing-id"):
            linked_graph.edit_node("missing-id", label="x", x=5)

        assert to_xml(linked_graph) == before

    def test_label(self, linked_graph):
        linked_graph.edit_node("a", label="Line 1\nLine 2")
        assert linked_graph.get_cell("a").value == "Line 1\nLine 2"

    def test_empty_label_keeps_current(self, linked_graph):
        linked_graph.edit_node("a", label="")
        assert linked_graph.get_cell("a").value == "A"

    def test_edge_label(self, linked_graph):
        linked_graph.edit_node("a-2-b", label="calls")
        assert linked_graph.get_cell("a-2-b").value == "calls"

    def test_kind_replaces_whole_style(self, graph):
        graph.add_node("n1", style={"fillColor": "#ff0000"})
        node = graph.edit_node("n1", kind="cloud")

        assert node.style == KINDS[Kind.CLOUD].style
        assert "fillColor" not in node.style_dict()
        assert node.kind is Kind.CLOUD

    def test_kind_keeps_geometry(self, graph):
        graph.add_node("n1", x=1, y=2)
        node = graph.edit_node("n1", kind="circle")
        assert node.geometry.bounds() == (1, 2, 121, 62)

    def test_unknown_kind_changes_nothing(self, graph):
        graph.add_node("n1", "Label")
        with pytest.raises(InvalidInputError):
            graph.edit_node("n1", label="New", kind="hexagon")
        assert graph.get_cell("n1").value == "Label"

    def test_corner_radius_applies_on_current_style(self, graph):
        graph.add_node("n1", kind="rounded-rectangle", style={"fillColor": "#00ff00"})
        node = graph.edit_node("n1", corner_radius=8)

        style = node.style_dict()
        assert style["fillColor"] == "#00ff00"
        assert style["arcSize"] == "16"

    def test_corner_radius_with_kind_change(self, graph):
        graph.add_node("n1", kind="rectangle", style={"fillColor": "#00ff00"})
        node = graph.edit_node("n1", kind="rounded-rectangle", corner_radius=3)

        style = node.style_dict()
        assert "fillColor" not in style
        assert style["arcSize"] == "6"

    def test_corner_radius_ignored_for_other_kinds(self, graph):
        graph.add_node("n1", kind="ellipse")
        node = graph.edit_node("n1", corner_radius=8)
        assert node.style == KINDS[Kind.ELLIPSE].style

    def test_partial_geometry_builds_new_record(self, graph):
        node = graph.add_node("n1")
        old_geometry = node.geometry

        graph.edit_node("n1", x=50, height=99)

        assert node.geometry is not old_geometry
        assert node.geometry.bounds() == (50, 10, 170, 109)
        assert old_geometry.x == 10


class TestLinkNodes:
    """Tests for Graph.link_nodes."""

    def test_edge_id_and_default_style(self, linked_graph):
        edge = linked_graph.get_cell("a-2-b")

        assert edge.edge is True
        assert edge.source == "a"
        assert edge.target == "b"
        assert edge.parent == "1"
        assert edge.value is None
        assert edge.style == "edgeStyle=none;noEdgeStyle=1;orthogonal=1;html=1;"
        assert edge.geometry.relative is True

    def test_returns_id(self, graph):
        graph.add_node("x")
        graph.add_node("y")
        assert graph.link_nodes("x", "y", label="uses") == "x-2-y"

    def test_style_overrides(self, linked_graph):
        linked_graph.link_nodes("b", "a", style={"dashed": 1, "edgeStyle": "orthogonalEdgeStyle"})
        style = linked_graph.get_cell("b-2-a").style_dict()

        assert style["dashed"] == "1"
        assert style["edgeStyle"] == "orthogonalEdgeStyle"
        assert style["orthogonal"] == "1"

    def test_relinking_upserts(self, linked_graph):
        linked_graph.link_nodes("a", "b", label="again", style={"dashed": 1})

        assert linked_graph.stats().edge_count == 1
        edge = linked_graph.get_cell("a-2-b")
        assert edge.value == "again"
        assert edge.style_dict()["dashed"] == "1"

    def test_missing_endpoint(self, linked_graph):
        with pytest.raises(CellNotFoundError, match="ghost"):
            linked_graph.link_nodes("a", "ghost")
        assert "a-2-ghost" not in linked_graph

    def test_structural_endpoints_rejected(self, linked_graph):
        with pytest.raises(InvalidInputError):
            linked_graph.link_nodes("a", "1")
        assert "a-2-1" not in linked_graph


class TestRemoveNodes:
    """Tests for Graph.remove_nodes."""

    def test_remove_edge_keeps_nodes(self, linked_graph):
        removed = linked_graph.remove_nodes(["a-2-b"])

        assert removed == ["a-2-b"]
        assert "a" in linked_graph
        assert "b" in linked_graph
        assert linked_graph.stats().edge_count == 0

    def test_remove_node_does_not_cascade(self, linked_graph):
        linked_graph.remove_nodes(["a"])

        assert "a" not in linked_graph
        assert linked_graph.get_cell("a-2-b").source == "a"

    def test_cascade(self, linked_graph):
        removed = linked_graph.remove_nodes(["a"], cascade=True)

        assert removed == ["a", "a-2-b"]
        assert [c.id for c in linked_graph.vertices()] == ["b"]

    def test_unknown_ids_ignored(self, linked_graph):
        assert linked_graph.remove_nodes(["ghost", "b"]) == ["b"]
        assert linked_graph.remove_nodes(["ghost"]) == []

    def test_children_removed_with_parent(self, graph):
        graph.add_node("group")
        graph.add_node("child", parent="group")
        graph.add_node("grandchild", parent="child")
        graph.add_node("other")

        removed = graph.remove_nodes(["group"])

        assert removed == ["group", "child", "grandchild"]
        assert [c.id for c in graph.vertices()] == ["other"]

    def test_structural_cells_stay(self, linked_graph):
        linked_graph.remove_nodes(["0", "1"])
        assert "0" in linked_graph
        assert "1" in linked_graph
