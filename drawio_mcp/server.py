#!/usr/bin/env python3
"""
drawio MCP Server

Provides MCP tools for AI agents to create and edit .drawio.svg diagrams.
Every mutating tool loads the file, applies its changes and saves it back;
nothing is kept in memory between calls.
"""

import json
import logging
from contextlib import contextmanager
from typing import Optional, TypeVar

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ValidationError

from drawio_core import (
    DiagramError,
    Graph,
    InvalidInputError,
    apply_layout,
    file_manager,
    to_xml,
    validate_graph,
    validate_layout,
    validation_summary,
)

from .config import ServerConfig
from .schemas import EdgeSpec, LayoutSpec, NodeEdit, NodeSpec

logger = logging.getLogger(__name__)

config = ServerConfig.from_env()

# Create MCP server
mcp = FastMCP(config.name)

M = TypeVar("M", bound=BaseModel)


# --- Helpers ---

@contextmanager
def _reported(tool: str, file_path: str):
    """Log a failing tool call before the error reaches FastMCP."""
    try:
        yield
    except Exception as e:
        logger.error("Failed to execute tool %s on %s: %s", tool, file_path, e)
        raise


def _require_path(file_path: str):
    if not file_path:
        raise InvalidInputError("file_path is required")


def _coerce(model: type[M], items, field: str) -> list[M]:
    """Validate a list of request items (dicts or model instances)."""
    if not isinstance(items, list):
        raise InvalidInputError(f"{field} must be a list")
    try:
        return [item if isinstance(item, model) else model.model_validate(item) for item in items]
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {field}: {e}") from e


def _apply_all(graph: Graph, items: list, apply, atomic: bool) -> tuple[list[str], list[str]]:
    """
    Apply an operation to each item.

    In atomic mode the first failure propagates (and the caller's
    transaction discards every change). Otherwise failures are collected
    and the remaining items are still applied.
    """
    done: list[str] = []
    failed: list[str] = []
    for item in items:
        try:
            done.append(apply(graph, item))
        except DiagramError as e:
            if atomic:
                raise
            failed.append(str(e))
    return done, failed


def _summary(action: str, done: list[str], failed: list[str], file_path: str) -> str:
    text = f"{action}: {', '.join(done) if done else 'nothing'} in {file_path}"
    if failed:
        text += "\nFailed:\n" + "\n".join(f"- {msg}" for msg in failed)
    return text


# ============================================================================
# DIAGRAM TOOLS
# ============================================================================

@mcp.tool()
def new_diagram(file_path: str) -> str:
    """
    Create a new empty diagram file.

    Args:
        file_path: Absolute or relative path for the diagram file (should end with .drawio.svg)
    """
    with _reported("new_diagram", file_path):
        _require_path(file_path)
        path = file_manager.save(Graph(), file_path)
        logger.info("Created new diagram %s", path)
        return f"Created new diagram: {file_path}"


@mcp.tool()
def get_diagram_info(file_path: str) -> str:
    """
    Get the XML representation of a diagram file.

    Args:
        file_path: Absolute or relative path to the diagram file to inspect

    Returns the mxGraph XML with every cell's id, label, style, geometry,
    parent and edge endpoints.
    """
    with _reported("get_diagram_info", file_path):
        _require_path(file_path)
        return to_xml(file_manager.load(file_path))


@mcp.tool()
def validate_diagram(file_path: str) -> str:
    """
    Check a diagram for structural issues.

    Args:
        file_path: Absolute or relative path to the diagram file to inspect

    Reports edges pointing at removed nodes, missing parents, orphan nodes
    and self-referencing edges.
    """
    with _reported("validate_diagram", file_path):
        _require_path(file_path)
        issues = validate_graph(file_manager.load(file_path))
        return json.dumps({
            "summary": validation_summary(issues),
            "issues": [issue.to_dict() for issue in issues],
        }, indent=2)


# ============================================================================
# NODE TOOLS
# ============================================================================

def _add(graph: Graph, spec: NodeSpec) -> str:
    graph.add_node(
        id=spec.id,
        label=spec.label,
        parent=spec.parent,
        kind=spec.kind,
        x=spec.x,
        y=spec.y,
        width=spec.width,
        height=spec.height,
        style=spec.style,
        corner_radius=spec.corner_radius,
    )
    return spec.id


@mcp.tool()
def add_nodes(
    file_path: str,
    nodes: list[NodeSpec],
    layout: Optional[LayoutSpec] = None,
    atomic: bool = True
) -> str:
    """
    Add nodes to a diagram file, optionally laying out the diagram afterwards.

    Args:
        file_path: Absolute or relative path to the diagram file to modify
        nodes: Nodes to add. Each has an id, label, kind (rectangle, rounded-rectangle,
            ellipse, cylinder, cloud, square, circle, step, actor, text), parent
            (root for top-level nodes), x, y and optional width, height, style
            and corner_radius (rounded-rectangle only)
        layout: Optional layout to run after insertion:
            {"algorithm": "hierarchical" | "circle" | "organic" | "compact-tree" |
            "radial-tree" | "partition" | "stack", "options": {"direction": "top-down" | "left-right"}}
        atomic: When true (default) any failure leaves the file unchanged;
            when false, failing nodes are reported and the rest are saved
    """
    with _reported("add_nodes", file_path):
        _require_path(file_path)
        specs = _coerce(NodeSpec, nodes, "nodes")
        if layout is not None:
            layout = layout if isinstance(layout, LayoutSpec) else LayoutSpec.model_validate(layout)
            validate_layout(layout.algorithm, layout.options)

        with file_manager.transaction(file_path) as graph:
            done, failed = _apply_all(graph, specs, _add, atomic)
            if layout is not None:
                apply_layout(graph, layout.algorithm, layout.options)

        logger.info("Added %d node(s) to %s", len(done), file_path)
        text = _summary("Added nodes", done, failed, file_path)
        if layout is not None:
            text += f"\nApplied {layout.algorithm} layout"
        return text


def _edit(graph: Graph, edit: NodeEdit) -> str:
    graph.edit_node(
        id=edit.id,
        label=edit.label,
        kind=edit.kind,
        x=edit.x,
        y=edit.y,
        width=edit.width,
        height=edit.height,
        corner_radius=edit.corner_radius,
    )
    return edit.id


@mcp.tool()
def edit_nodes(file_path: str, nodes: list[NodeEdit], atomic: bool = True) -> str:
    """
    Edit nodes or edges in a diagram file.

    Args:
        file_path: Absolute or relative path to the diagram file to modify
        nodes: Changes, each with the id to update and any of label, kind, x, y,
            width, height, corner_radius. Only provided fields change.
            Setting kind REPLACES the node's whole style with that kind's
            default, discarding any custom styling.
        atomic: When true (default) any failure leaves the file unchanged
    """
    with _reported("edit_nodes", file_path):
        _require_path(file_path)
        edits = _coerce(NodeEdit, nodes, "nodes")
        with file_manager.transaction(file_path) as graph:
            done, failed = _apply_all(graph, edits, _edit, atomic)

        logger.info("Edited %d node(s) in %s", len(done), file_path)
        return _summary("Edited nodes", done, failed, file_path)


def _link(graph: Graph, spec: EdgeSpec) -> str:
    return graph.link_nodes(
        spec.source,
        spec.target,
        label=spec.label,
        style=spec.style_overrides(),
    )


@mcp.tool()
def link_nodes(file_path: str, edges: list[EdgeSpec], atomic: bool = True) -> str:
    """
    Create connections between nodes in a diagram file.

    Args:
        file_path: Absolute or relative path to the diagram file to modify
        edges: Connections, each with from/source, to/target and optional
            label, dashed, reverse and style. The edge id is "<from>-2-<to>";
            linking the same pair again replaces the earlier connection.
        atomic: When true (default) any failure leaves the file unchanged
    """
    with _reported("link_nodes", file_path):
        _require_path(file_path)
        specs = _coerce(EdgeSpec, edges, "edges")
        with file_manager.transaction(file_path) as graph:
            done, failed = _apply_all(graph, specs, _link, atomic)

        logger.info("Linked %d edge(s) in %s", len(done), file_path)
        return _summary("Linked nodes", [f"[{eid}]" for eid in done], failed, file_path)


@mcp.tool()
def remove_nodes(file_path: str, ids: list[str], cascade: Optional[bool] = None) -> str:
    """
    Remove nodes or edges from a diagram file.

    Args:
        file_path: Absolute or relative path to the diagram file to modify
        ids: IDs of the nodes/edges to remove; unknown ids are ignored
        cascade: Also remove edges attached to removed nodes. Defaults to the
            server setting (off unless DRAWIO_MCP_CASCADE_REMOVE is set)
    """
    with _reported("remove_nodes", file_path):
        _require_path(file_path)
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise InvalidInputError("ids must be a list of strings")
        if cascade is None:
            cascade = config.cascade_remove

        with file_manager.transaction(file_path) as graph:
            removed = graph.remove_nodes(ids, cascade=cascade)

        logger.info("Removed %d cell(s) from %s", len(removed), file_path)
        return _summary("Removed nodes", removed, [], file_path)


def run():
    """Run the server over stdio."""
    logger.info("Starting %s", config.name)
    mcp.run()
