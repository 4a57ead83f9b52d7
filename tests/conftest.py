"""Shared fixtures for the diagram tests."""

import pytest

from drawio_core import Graph


@pytest.fixture
def graph():
    """An empty graph."""
    return Graph()


@pytest.fixture
def linked_graph():
    """Two rectangles a -> b."""
    g = Graph()
    g.add_node("a", "A", x=0, y=0)
    g.add_node("b", "B", x=200, y=0)
    g.link_nodes("a", "b")
    return g


@pytest.fixture
def diagram_path(tmp_path):
    """Path of a not-yet-existing diagram file."""
    return tmp_path / "diagrams" / "test.drawio.svg"
