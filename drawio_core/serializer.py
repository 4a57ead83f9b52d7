"""
Diagram serializer - Graph <-> mxGraph XML.

Produces the document the draw.io editor stores inside a diagram:

    <mxGraphModel>
      <root>
        <mxCell id="0" />
        <mxCell id="1" parent="0" />
        <mxCell id="a" value="A" style="..." vertex="1" parent="1">
          <mxGeometry x="10" y="10" width="120" height="60" as="geometry" />
        </mxCell>
      </root>
    </mxGraphModel>

Output is deterministic: cells in storage order, fixed attribute order,
two-space indentation.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from .errors import MalformedDocumentError
from .graph import Graph
from .models import Cell, Geometry, detect_kind

logger = logging.getLogger(__name__)

MODEL_TAG = "mxGraphModel"
CELL_TAG = "mxCell"
GEOMETRY_TAG = "mxGeometry"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _encode_geometry(parent: ET.Element, geometry: Geometry):
    element = ET.SubElement(parent, GEOMETRY_TAG)
    for name in ("x", "y", "width", "height"):
        value = getattr(geometry, name)
        # Zero is the default and is left out, like the mxGraph codec does
        if value:
            element.set(name, _format_number(value))
    if geometry.relative:
        element.set("relative", "1")
    element.set("as", "geometry")


def _encode_cell(parent: ET.Element, cell: Cell):
    element = ET.SubElement(parent, CELL_TAG)
    element.set("id", cell.id)
    if cell.value is not None:
        element.set("value", cell.value)
    if cell.style:
        element.set("style", cell.style)
    if cell.vertex:
        element.set("vertex", "1")
    if cell.edge:
        element.set("edge", "1")
    if cell.parent is not None:
        element.set("parent", cell.parent)
    if cell.source is not None:
        element.set("source", cell.source)
    if cell.target is not None:
        element.set("target", cell.target)
    if cell.geometry is not None:
        _encode_geometry(element, cell.geometry)


def to_xml(graph: Graph) -> str:
    """Serialize a graph to pretty-printed mxGraph XML."""
    model = ET.Element(MODEL_TAG)
    root = ET.SubElement(model, "root")
    for cell in graph:
        _encode_cell(root, cell)
    ET.indent(model, space="  ")
    return ET.tostring(model, encoding="unicode")


def _float(element: ET.Element, name: str) -> float:
    raw = element.get(name)
    if raw is None or raw == "":
        return 0.0
    try:
        return float(raw)
    except ValueError:
        raise MalformedDocumentError(f"Invalid {name} value in geometry: {raw!r}") from None


def _decode_cell(element: ET.Element, wrapper: Optional[ET.Element] = None) -> Cell:
    # Cells with custom properties sit inside <object>/<UserObject>, which carries the id and label
    owner = element if wrapper is None else wrapper
    cell_id = owner.get("id")
    if not cell_id:
        raise MalformedDocumentError("mxCell element without an id")

    geometry = None
    geo_element = element.find(GEOMETRY_TAG)
    if geo_element is not None:
        geometry = Geometry(
            x=_float(geo_element, "x"),
            y=_float(geo_element, "y"),
            width=_float(geo_element, "width"),
            height=_float(geo_element, "height"),
            relative=geo_element.get("relative") == "1",
        )

    vertex = element.get("vertex") == "1"
    style = element.get("style")
    return Cell(
        id=cell_id,
        value=element.get("value") if wrapper is None else wrapper.get("label"),
        style=style,
        vertex=vertex,
        edge=element.get("edge") == "1",
        parent=element.get("parent"),
        source=element.get("source"),
        target=element.get("target"),
        geometry=geometry,
        kind=detect_kind(style) if vertex and style else None,
    )


def from_xml(xml: str) -> Graph:
    """
    Parse mxGraph XML into a graph.

    A well-formed model without cells yields an empty graph (root and
    default layer only).

    Cells wrapped in <object> or <UserObject> elements keep the wrapper's id
    and label; its other properties are not carried over.
    """
    try:
        model = ET.fromstring(xml)
    except ET.ParseError as e:
        raise MalformedDocumentError(f"Malformed diagram document: {e}") from e

    if model.tag != MODEL_TAG:
        raise MalformedDocumentError(
            f"Malformed diagram document: expected <{MODEL_TAG}>, got <{model.tag}>"
        )

    graph = Graph(with_root=False)
    root = model.find("root")
    if root is not None:
        for element in root:
            if element.tag == CELL_TAG:
                graph.insert(_decode_cell(element))
                continue
            cell = element.find(CELL_TAG)
            if cell is None:
                logger.debug("Skipping <%s> without an mxCell", element.tag)
                continue
            graph.insert(_decode_cell(cell, wrapper=element))
    graph.ensure_root()

    logger.debug("Parsed diagram with %d cells", len(graph))
    return graph
