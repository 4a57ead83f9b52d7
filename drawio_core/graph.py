"""
Diagram graph - the in-memory cell store and its mutation operations.

This module implements:
- An ordered id -> Cell index (insertion order is the serialization order)
- Node creation from kind archetypes with style and size overrides
- Node edits, edge upserts and batch removal

A Graph always holds the model root ("0") and the default layer ("1").
Callers address the default layer as "root".
"""

import logging
from typing import Iterable, Iterator, Optional

from . import style as style_codec
from .errors import CellNotFoundError, InvalidInputError
from .models import (
    DEFAULT_PARENT_ID,
    KINDS,
    ROOT_ID,
    Cell,
    DiagramStats,
    Geometry,
    Kind,
    corner_radius_style,
)
from .style import StyleLike

logger = logging.getLogger(__name__)

ROOT_ALIAS = "root"

DEFAULT_EDGE_STYLE = {
    "edgeStyle": "none",
    "noEdgeStyle": 1,
    "orthogonal": 1,
    "html": 1,
}


# Ids of the model root and default layer
STRUCTURAL_IDS = (ROOT_ID, DEFAULT_PARENT_ID)


def edge_id(source: str, target: str) -> str:
    """Get the id of the edge linking source to target."""
    return f"{source}-2-{target}"


class Graph:
    """
    A diagram: ordered cells plus the implicit root container.

    Features:
    - O(1) cell lookups via an insertion-ordered index
    - Ids shared between nodes and edges; re-using an id overwrites the cell
    - No cascading: removing a node leaves edges that reference it unless
      the caller asks for a cascade
    """

    def __init__(self, with_root: bool = True):
        self._cells: dict[str, Cell] = {}
        if with_root:
            self.ensure_root()

    def ensure_root(self):
        """Add the model root and default layer if they are missing."""
        if ROOT_ID not in self._cells:
            self._cells = {ROOT_ID: Cell(id=ROOT_ID), **self._cells}
        if DEFAULT_PARENT_ID not in self._cells:
            layer = Cell(id=DEFAULT_PARENT_ID, parent=ROOT_ID)
            cells = list(self._cells.items())
            cells.insert(1, (DEFAULT_PARENT_ID, layer))
            self._cells = dict(cells)

    # --- Lookups ---

    def __contains__(self, cell_id: str) -> bool:
        return cell_id in self._cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    @property
    def default_parent(self) -> Cell:
        return self._cells[DEFAULT_PARENT_ID]

    def get_cell(self, cell_id: str) -> Optional[Cell]:
        """Get a cell by id (O(1) lookup)."""
        return self._cells.get(cell_id)

    def require_cell(self, cell_id: str, role: str = "Node") -> Cell:
        """Get a cell by id or raise CellNotFoundError."""
        cell = self._cells.get(cell_id)
        if cell is None:
            raise CellNotFoundError(cell_id, role)
        return cell

    def vertices(self) -> list[Cell]:
        return [c for c in self._cells.values() if c.vertex]

    def edges(self) -> list[Cell]:
        return [c for c in self._cells.values() if c.edge]

    def children(self, parent_id: str, vertices_only: bool = False) -> list[Cell]:
        """Get the direct children of a cell, in storage order."""
        return [
            c for c in self._cells.values()
            if c.parent == parent_id and (c.vertex or not vertices_only)
        ]

    def insert(self, cell: Cell) -> Cell:
        """Store a cell; an existing cell with the same id is overwritten in place."""
        if cell.id in self._cells:
            logger.debug("Overwriting cell %s", cell.id)
        self._cells[cell.id] = cell
        return cell

    def stats(self) -> DiagramStats:
        cells = self._cells.values()
        return DiagramStats(
            node_count=sum(1 for c in cells if c.vertex),
            edge_count=sum(1 for c in cells if c.edge),
        )

    def bounds(self) -> tuple[float, float, float, float]:
        """Bounding box (x, y, right, bottom) of top-level nodes; zeros if empty."""
        boxes = [
            c.geometry.bounds() for c in self.children(DEFAULT_PARENT_ID, vertices_only=True)
            if c.geometry is not None
        ]
        if not boxes:
            return (0, 0, 0, 0)
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    # --- Node Operations ---

    def _resolve_parent(self, parent: Optional[str]) -> str:
        if parent is None or parent == ROOT_ALIAS:
            return DEFAULT_PARENT_ID
        return self.require_cell(parent, "Parent node").id

    def add_node(
        self,
        id: str,
        label: Optional[str] = None,
        parent: str = ROOT_ALIAS,
        kind: "str | Kind" = Kind.RECTANGLE,
        x: float = 10,
        y: float = 10,
        width: Optional[float] = None,
        height: Optional[float] = None,
        style: Optional[StyleLike] = None,
        corner_radius: Optional[float] = None,
    ) -> Cell:
        """
        Add a node built from a kind archetype.

        The archetype's style is adjusted for the kind (corner radius for
        rounded rectangles), then explicit style entries and width/height
        overrides are layered on top.
        """
        if not id:
            raise InvalidInputError("Node id is required")
        if id in STRUCTURAL_IDS:
            raise InvalidInputError(f"Node id {id!r} is reserved for the diagram root and default layer")
        resolved_kind = Kind.resolve(kind)
        template = KINDS[resolved_kind]
        parent_id = self._resolve_parent(parent)

        node_style = template.style
        if resolved_kind is Kind.ROUNDED_RECTANGLE and corner_radius is not None:
            node_style = corner_radius_style(node_style, corner_radius)
        if style:
            node_style = style_codec.stringify(style_codec.merge(node_style, style))

        node = Cell(
            id=id,
            value=label,
            style=node_style,
            vertex=True,
            parent=parent_id,
            geometry=Geometry(
                x=float(x),
                y=float(y),
                width=template.width if width is None else float(width),
                height=template.height if height is None else float(height),
            ),
            kind=resolved_kind,
        )
        logger.debug("Adding node %s (%s) under %s", id, resolved_kind.value, parent_id)
        return self.insert(node)

    def edit_node(
        self,
        id: str,
        label: Optional[str] = None,
        kind: "str | Kind | None" = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        corner_radius: Optional[float] = None,
    ) -> Cell:
        """
        Update an existing node or edge.

        Setting ``kind`` replaces the whole style with the archetype default;
        custom style entries on the cell are discarded. A corner radius on a
        rounded rectangle is applied on top of the cell's current style.
        Geometry changes build a new Geometry, falling back to current values
        for omitted fields.
        """
        cell = self.require_cell(id)
        new_kind = Kind.resolve(kind) if kind is not None else None

        # An empty label leaves the current one in place
        if label:
            cell.value = label
        if new_kind is not None:
            cell.style = KINDS[new_kind].style
            cell.kind = new_kind
        if cell.kind is Kind.ROUNDED_RECTANGLE and corner_radius is not None:
            cell.style = corner_radius_style(cell.style or "", corner_radius)

        if any(v is not None for v in (x, y, width, height)):
            current = cell.geometry or Geometry()
            cell.geometry = Geometry(
                x=current.x if x is None else float(x),
                y=current.y if y is None else float(y),
                width=current.width if width is None else float(width),
                height=current.height if height is None else float(height),
                relative=current.relative,
            )
        return cell

    # --- Edge Operations ---

    def link_nodes(
        self,
        source: str,
        target: str,
        label: Optional[str] = None,
        style: Optional[StyleLike] = None,
    ) -> str:
        """
        Connect two cells with an edge and return its id.

        The id is derived from the endpoints, so linking the same pair again
        replaces the earlier edge's label and style under the same id.
        """
        if not source or not target:
            raise InvalidInputError("Both source and target nodes must be specified")
        if source in STRUCTURAL_IDS or target in STRUCTURAL_IDS:
            raise InvalidInputError("The diagram root and default layer cannot be linked")
        self.require_cell(source, "Source node")
        self.require_cell(target, "Target node")

        cell_id = edge_id(source, target)
        self.insert(Cell(
            id=cell_id,
            value=label or None,
            style=style_codec.stringify(style_codec.merge(DEFAULT_EDGE_STYLE, style)),
            edge=True,
            parent=DEFAULT_PARENT_ID,
            source=source,
            target=target,
            geometry=Geometry(relative=True),
        ))
        return cell_id

    # --- Removal ---

    def _descendants(self, cell_ids: set[str]) -> set[str]:
        found = set(cell_ids)
        changed = True
        while changed:
            changed = False
            for cell in self._cells.values():
                if cell.parent in found and cell.id not in found:
                    found.add(cell.id)
                    changed = True
        return found

    def remove_nodes(self, ids: Iterable[str], cascade: bool = False) -> list[str]:
        """
        Remove cells by id in one batch and return the removed ids.

        Unknown ids are ignored. Cells nested inside a removed cell go with
        it. Edges attached to a removed node stay unless ``cascade`` is set.
        The root and default layer cannot be removed.
        """
        resolved = {
            cell_id for cell_id in ids
            if cell_id in self._cells and cell_id not in STRUCTURAL_IDS
        }
        doomed = self._descendants(resolved)
        if cascade:
            doomed |= {
                c.id for c in self._cells.values()
                if c.edge and (c.source in doomed or c.target in doomed)
            }

        removed = [cell_id for cell_id in self._cells if cell_id in doomed]
        for cell_id in removed:
            del self._cells[cell_id]
        if removed:
            logger.debug("Removed cells: %s", ", ".join(removed))
        return removed
