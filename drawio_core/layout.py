"""
Layout algorithms for diagram nodes.

Provides the layout strategies that can be applied to a graph:
- hierarchical: Layered layout following edge directions
- circle: Nodes evenly spaced on a circle
- organic: Force-directed layout using spring physics
- compact-tree: Tidy tree with parents centred over their subtrees
- radial-tree: Tree levels on concentric circles
- partition: Nodes resized into equal columns of the current bounding box
- stack: Nodes placed side by side in storage order

All layouts work on the nodes directly under the default layer and modify
their geometry in place. Edges are never given geometry; they stay routed.
apply_layout validates the request completely before touching any node.
"""

import logging
import math
from collections import defaultdict
from typing import Callable, Optional

from .errors import InvalidDirectionError, InvalidInputError, UnsupportedAlgorithmError
from .graph import Graph
from .models import DEFAULT_PARENT_ID, Cell, Geometry

logger = logging.getLogger(__name__)


# Default layout parameters
INTRA_CELL_SPACING = 30
INTER_RANK_SPACING = 100
DEFAULT_START_X = 0
DEFAULT_START_Y = 0
MIN_CIRCLE_RADIUS = 100
LEVEL_DISTANCE = 160
STACK_SPACING = 20

DIRECTIONS = ("top-down", "left-right")


def _layout_cells(graph: Graph) -> tuple[list[Cell], list[tuple[str, str]]]:
    """Get top-level nodes and the edges between them."""
    nodes = [n for n in graph.children(DEFAULT_PARENT_ID, vertices_only=True) if n.geometry is not None]
    ids = {n.id for n in nodes}
    links = [
        (e.source, e.target) for e in graph.edges()
        if e.source in ids and e.target in ids and e.source != e.target
    ]
    return nodes, links


def _move(node: Cell, x: float, y: float, width: Optional[float] = None, height: Optional[float] = None):
    geo = node.geometry
    node.geometry = Geometry(
        x=round(x, 2),
        y=round(y, 2),
        width=geo.width if width is None else round(width, 2),
        height=geo.height if height is None else round(height, 2),
    )


def _forest(nodes: list[Cell], links: list[tuple[str, str]]):
    """
    Build a spanning forest over the links with BFS.

    Roots are nodes without incoming edges, in storage order. If every node
    sits on a cycle the first stored node becomes the root.

    Returns (roots, children) where children maps node id -> child ids.
    """
    outgoing: dict[str, list[str]] = defaultdict(list)
    has_parent: set[str] = set()
    for source, target in links:
        outgoing[source].append(target)
        has_parent.add(target)

    roots = [n.id for n in nodes if n.id not in has_parent]
    if not roots and nodes:
        roots = [nodes[0].id]

    children: dict[str, list[str]] = {n.id: [] for n in nodes}
    visited: set[str] = set()
    ordered_roots: list[str] = []
    pending = list(roots) + [n.id for n in nodes]
    for start in pending:
        if start in visited:
            continue
        ordered_roots.append(start)
        visited.add(start)
        queue = [start]
        while queue:
            current = queue.pop(0)
            for child in outgoing.get(current, []):
                if child not in visited:
                    visited.add(child)
                    children[current].append(child)
                    queue.append(child)
    return ordered_roots, children


# --- Algorithms ---

def hierarchical_layout(graph: Graph, direction: str = "top-down") -> list[Cell]:
    """
    Arrange nodes in ranks following edge directions.

    Each node's rank is the longest path from a source node (cycles are
    broken by ignoring back edges found during DFS). Nodes in a rank are
    ordered by the barycenter of their predecessors, and every rank is
    centred on the widest one.
    """
    nodes, links = _layout_cells(graph)
    if not nodes:
        return nodes

    node_map = {n.id: n for n in nodes}
    outgoing: dict[str, list[str]] = defaultdict(list)
    incoming_count: dict[str, int] = defaultdict(int)
    for source, target in links:
        outgoing[source].append(target)
        incoming_count[target] += 1

    sources = [n.id for n in nodes if incoming_count[n.id] == 0]
    if not sources:
        # All nodes on cycles; the first stored node seeds the ranking
        sources = [nodes[0].id]

    # DFS to drop back edges so ranking terminates
    acyclic: dict[str, list[str]] = defaultdict(list)
    state: dict[str, int] = {}
    for start in sources + [n.id for n in nodes]:
        if start in state:
            continue
        stack = [(start, iter(outgoing.get(start, [])))]
        state[start] = 1
        while stack:
            current, it = stack[-1]
            nxt = next(it, None)
            if nxt is None:
                state[current] = 2
                stack.pop()
            elif state.get(nxt) == 1:
                continue  # back edge
            else:
                acyclic[current].append(nxt)
                if nxt not in state:
                    state[nxt] = 1
                    stack.append((nxt, iter(outgoing.get(nxt, []))))

    # Longest-path ranking over the acyclic edges (Kahn order)
    indegree: dict[str, int] = {n.id: 0 for n in nodes}
    for targets in acyclic.values():
        for target in targets:
            indegree[target] += 1
    ranks: dict[str, int] = {n.id: 0 for n in nodes}
    queue = [n.id for n in nodes if indegree[n.id] == 0]
    while queue:
        current = queue.pop(0)
        for target in acyclic.get(current, []):
            ranks[target] = max(ranks[target], ranks[current] + 1)
            indegree[target] -= 1
            if indegree[target] == 0:
                queue.append(target)

    layers: dict[int, list[str]] = defaultdict(list)
    for node in nodes:
        layers[ranks[node.id]].append(node.id)

    # Barycenter ordering against the previous rank
    predecessors: dict[str, list[str]] = defaultdict(list)
    for source, targets in acyclic.items():
        for target in targets:
            predecessors[target].append(source)
    position: dict[str, float] = {}
    for rank in sorted(layers):
        members = layers[rank]
        if rank > 0:
            members.sort(key=lambda nid: (
                sum(position[p] for p in predecessors[nid]) / len(predecessors[nid])
                if predecessors[nid] else math.inf
            ))
        for idx, nid in enumerate(members):
            position[nid] = idx

    horizontal = direction == "left-right"

    def extent(node: Cell) -> float:
        return node.geometry.height if horizontal else node.geometry.width

    def depth(node: Cell) -> float:
        return node.geometry.width if horizontal else node.geometry.height

    spans = {
        rank: sum(extent(node_map[nid]) for nid in members) + INTRA_CELL_SPACING * (len(members) - 1)
        for rank, members in layers.items()
    }
    widest = max(spans.values())

    offset = DEFAULT_START_Y if not horizontal else DEFAULT_START_X
    for rank in sorted(layers):
        members = layers[rank]
        cursor = (widest - spans[rank]) / 2
        rank_depth = max(depth(node_map[nid]) for nid in members)
        for nid in members:
            node = node_map[nid]
            if horizontal:
                _move(node, offset, DEFAULT_START_Y + cursor)
            else:
                _move(node, DEFAULT_START_X + cursor, offset)
            cursor += extent(node) + INTRA_CELL_SPACING
        offset += rank_depth + INTER_RANK_SPACING

    return nodes


def circle_layout(graph: Graph) -> list[Cell]:
    """
    Place nodes evenly on a circle, starting at the top.

    The radius grows with the node count so the largest node fits
    between its neighbours.
    """
    nodes, _ = _layout_cells(graph)
    if not nodes:
        return nodes

    max_size = max(max(n.geometry.width, n.geometry.height) for n in nodes)
    radius = max(MIN_CIRCLE_RADIUS, len(nodes) * max_size / math.pi)
    center = radius + max_size / 2

    for i, node in enumerate(nodes):
        angle = 2 * math.pi * i / len(nodes)
        cx = center + radius * math.sin(angle)
        cy = center - radius * math.cos(angle)
        _move(node, cx - node.geometry.width / 2, cy - node.geometry.height / 2)

    return nodes


def organic_layout(
    graph: Graph,
    iterations: int = 100,
    repulsion: float = 50000,
    attraction: float = 0.05,
    damping: float = 0.1,
    min_distance: float = 50
) -> list[Cell]:
    """
    Arrange nodes using a force-directed layout algorithm.

    Simulates physical forces:
    - All nodes repel each other (like charged particles)
    - Connected nodes attract each other (like springs)

    Starts from the circle layout, so the result is deterministic.
    """
    nodes, links = _layout_cells(graph)
    if len(nodes) < 2:
        return nodes

    circle_layout(graph)
    pos = {n.id: list(n.geometry.center()) for n in nodes}

    for _ in range(iterations):
        forces: dict[str, list[float]] = {n.id: [0.0, 0.0] for n in nodes}

        # Repulsion between all node pairs (Coulomb's law)
        for i, n1 in enumerate(nodes):
            for n2 in nodes[i + 1:]:
                dx = pos[n1.id][0] - pos[n2.id][0]
                dy = pos[n1.id][1] - pos[n2.id][1]
                dist = max(min_distance, math.hypot(dx, dy))
                force = repulsion / (dist * dist)
                fx, fy = force * dx / dist, force * dy / dist
                forces[n1.id][0] += fx
                forces[n1.id][1] += fy
                forces[n2.id][0] -= fx
                forces[n2.id][1] -= fy

        # Attraction along edges (Hooke's law)
        for source, target in links:
            dx = pos[target][0] - pos[source][0]
            dy = pos[target][1] - pos[source][1]
            dist = max(min_distance, math.hypot(dx, dy))
            force = dist * attraction
            fx, fy = force * dx / dist, force * dy / dist
            forces[source][0] += fx
            forces[source][1] += fy
            forces[target][0] -= fx
            forces[target][1] -= fy

        for node in nodes:
            pos[node.id][0] += forces[node.id][0] * damping
            pos[node.id][1] += forces[node.id][1] * damping

    # Shift so the top-left node corner sits at the origin
    min_x = min(pos[n.id][0] - n.geometry.width / 2 for n in nodes)
    min_y = min(pos[n.id][1] - n.geometry.height / 2 for n in nodes)
    for node in nodes:
        cx, cy = pos[node.id]
        _move(
            node,
            DEFAULT_START_X + cx - node.geometry.width / 2 - min_x,
            DEFAULT_START_Y + cy - node.geometry.height / 2 - min_y,
        )

    return nodes


def compact_tree_layout(graph: Graph) -> list[Cell]:
    """
    Arrange nodes as a tidy top-down tree.

    Leaves are packed left to right and every parent is centred over
    the span of its children. Disconnected trees sit side by side.
    """
    nodes, links = _layout_cells(graph)
    if not nodes:
        return nodes

    node_map = {n.id: n for n in nodes}
    roots, children = _forest(nodes, links)
    next_x = float(DEFAULT_START_X)
    starts: dict[str, float] = {}
    spans: dict[str, tuple[float, float]] = {}

    for root in roots:
        # Entries are (node id, y, children placed)
        stack = [(root, float(DEFAULT_START_Y), False)]
        while stack:
            node_id, y, expanded = stack.pop()
            node = node_map[node_id]
            kids = children[node_id]
            if not expanded:
                starts[node_id] = next_x
                stack.append((node_id, y, True))
                child_y = y + node.geometry.height + INTRA_CELL_SPACING * 2
                stack.extend((child, child_y, False) for child in reversed(kids))
                continue

            start = starts[node_id]
            if not kids:
                x = start
            else:
                left, right = spans[kids[0]][0], spans[kids[-1]][1]
                # Parents wider than their subtree must not overlap the left neighbour
                x = max(start, (left + right) / 2 - node.geometry.width / 2)
            next_x = max(next_x, x + node.geometry.width + INTRA_CELL_SPACING)
            _move(node, x, y)
            spans[node_id] = (x, x + node.geometry.width)

    return nodes


def radial_tree_layout(graph: Graph) -> list[Cell]:
    """
    Arrange a tree on concentric circles around its root.

    Each node gets an angular wedge proportional to the number of leaves
    below it; levels are LEVEL_DISTANCE apart. Several roots share a
    virtual centre.
    """
    nodes, links = _layout_cells(graph)
    if not nodes:
        return nodes

    node_map = {n.id: n for n in nodes}
    roots, children = _forest(nodes, links)

    # Pre-order listing; walking it backwards visits children before parents
    order: list[str] = []
    stack = list(reversed(roots))
    while stack:
        node_id = stack.pop()
        order.append(node_id)
        stack.extend(reversed(children[node_id]))

    leaves: dict[str, int] = {}
    for node_id in reversed(order):
        kids = children[node_id]
        leaves[node_id] = sum(leaves[k] for k in kids) if kids else 1

    placed: dict[str, tuple[float, float]] = {}
    # Entries are (node id, level, start angle, end angle)
    wedges: list[tuple[str, int, float, float]] = []
    if len(roots) == 1:
        wedges.append((roots[0], 0, 0.0, 2 * math.pi))
    else:
        total = sum(leaves[r] for r in roots)
        cursor = 0.0
        for root in roots:
            share = 2 * math.pi * leaves[root] / total
            wedges.append((root, 1, cursor, cursor + share))
            cursor += share
    wedges.reverse()

    while wedges:
        node_id, level, start, end = wedges.pop()
        angle = (start + end) / 2
        radius = level * LEVEL_DISTANCE
        placed[node_id] = (radius * math.cos(angle), radius * math.sin(angle))
        cursor = start
        child_wedges = []
        for child in children[node_id]:
            share = (end - start) * leaves[child] / leaves[node_id]
            child_wedges.append((child, level + 1, cursor, cursor + share))
            cursor += share
        wedges.extend(reversed(child_wedges))

    max_size = max(max(n.geometry.width, n.geometry.height) for n in nodes)
    min_x = min(p[0] for p in placed.values())
    min_y = min(p[1] for p in placed.values())
    for node_id, (cx, cy) in placed.items():
        node = node_map[node_id]
        _move(
            node,
            DEFAULT_START_X + cx - min_x + (max_size - node.geometry.width) / 2,
            DEFAULT_START_Y + cy - min_y + (max_size - node.geometry.height) / 2,
        )

    return nodes


def partition_layout(graph: Graph, spacing: float = 0) -> list[Cell]:
    """
    Divide the nodes' bounding box into equal columns, one per node.

    Nodes are resized to fill their column, so this layout changes sizes
    as well as positions.
    """
    nodes, _ = _layout_cells(graph)
    if not nodes:
        return nodes

    left = min(n.geometry.x for n in nodes)
    top = min(n.geometry.y for n in nodes)
    right = max(n.geometry.x + n.geometry.width for n in nodes)
    bottom = max(n.geometry.y + n.geometry.height for n in nodes)
    width = max(right - left, sum(n.geometry.width for n in nodes))
    height = bottom - top

    column = (width - spacing * (len(nodes) - 1)) / len(nodes)
    for i, node in enumerate(nodes):
        _move(node, left + i * (column + spacing), top, width=column, height=height)

    return nodes


def stack_layout(graph: Graph, spacing: float = STACK_SPACING) -> list[Cell]:
    """Place nodes side by side in storage order, top-aligned."""
    nodes, _ = _layout_cells(graph)
    cursor = DEFAULT_START_X
    for node in nodes:
        _move(node, cursor, DEFAULT_START_Y)
        cursor += node.geometry.width + spacing
    return nodes


# --- Dispatch ---

LAYOUTS: dict[str, Callable[..., list[Cell]]] = {
    "hierarchical": hierarchical_layout,
    "circle": circle_layout,
    "organic": organic_layout,
    "compact-tree": compact_tree_layout,
    "radial-tree": radial_tree_layout,
    "partition": partition_layout,
    "stack": stack_layout,
}

# Options each algorithm accepts from callers
LAYOUT_OPTIONS: dict[str, tuple[str, ...]] = {
    "hierarchical": ("direction",),
}


def validate_layout(algorithm: str, options: Optional[dict] = None) -> dict:
    """
    Check a layout request and return the keyword arguments for it.

    Raises UnsupportedAlgorithmError, InvalidDirectionError or
    InvalidInputError; never touches the graph.
    """
    if algorithm not in LAYOUTS:
        allowed = ", ".join(LAYOUTS)
        raise UnsupportedAlgorithmError(
            f"Unsupported layout algorithm: {algorithm!r} (allowed: {allowed})"
        )

    kwargs = {k: v for k, v in (options or {}).items() if v is not None}
    unknown = set(kwargs) - set(LAYOUT_OPTIONS.get(algorithm, ()))
    if unknown:
        raise InvalidInputError(
            f"Unknown options for {algorithm} layout: {', '.join(sorted(unknown))}"
        )

    direction = kwargs.get("direction")
    if direction is not None and direction not in DIRECTIONS:
        raise InvalidDirectionError(
            f"Invalid direction: {direction!r} (allowed: {', '.join(DIRECTIONS)})"
        )
    return kwargs


def apply_layout(graph: Graph, algorithm: str, options: Optional[dict] = None) -> list[Cell]:
    """
    Validate a layout request, then run it on the graph.

    Returns the nodes that were laid out. On a validation error no node
    has moved.
    """
    kwargs = validate_layout(algorithm, options)
    logger.info("Applying %s layout", algorithm)
    return LAYOUTS[algorithm](graph, **kwargs)
