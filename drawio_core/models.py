"""
Core data models for diagrams.

These models mirror the mxGraph cell model stored inside .drawio.svg files:
- Cells are nodes (vertex), edges, or plain containers (the model root and layers)
- Nodes carry an absolute Geometry relative to their parent
- Edges reference their endpoints by id and are routed automatically

Kind archetypes are a fixed table of shape templates. Each supplies a default
style and a default size for new nodes.
"""

from enum import Enum
from types import MappingProxyType
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

from . import style as style_codec
from .errors import InvalidInputError

# Ids of the structural cells every mxGraph model starts with
ROOT_ID = "0"
DEFAULT_PARENT_ID = "1"

DEFAULT_ARC_SIZE = 24


class Kind(str, Enum):
    """Shape archetypes a node can be created with."""
    RECTANGLE = "rectangle"
    ROUNDED_RECTANGLE = "rounded-rectangle"
    ELLIPSE = "ellipse"
    CYLINDER = "cylinder"
    CLOUD = "cloud"
    SQUARE = "square"
    CIRCLE = "circle"
    STEP = "step"
    ACTOR = "actor"
    TEXT = "text"

    @classmethod
    def resolve(cls, value: "str | Kind") -> "Kind":
        """Look up a kind by name, ignoring case ("Rectangle" == "rectangle")."""
        if isinstance(value, Kind):
            return value
        name = str(value).strip().lower().replace("_", "-")
        name = _KIND_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            raise InvalidInputError(f"Unknown kind: {value!r} (allowed: {allowed})") from None


_KIND_ALIASES = {
    "elipse": "ellipse",
    "rounded": "rounded-rectangle",
    "roundedrectangle": "rounded-rectangle",
}


class KindTemplate(NamedTuple):
    """Default style and size for a kind."""
    style: str
    width: float
    height: float
    # Style keys whose values vary per node and are ignored when detecting kinds
    variable_keys: frozenset = frozenset()


KINDS = MappingProxyType({
    Kind.RECTANGLE: KindTemplate(
        style_codec.stringify({"rounded": 1, "whiteSpace": "wrap", "html": 1}), 120, 60),
    Kind.ROUNDED_RECTANGLE: KindTemplate(
        style_codec.stringify({
            "rounded": 1, "whiteSpace": "wrap", "html": 1,
            "absoluteArcSize": 1, "arcSize": DEFAULT_ARC_SIZE,
        }), 120, 60, frozenset({"arcSize"})),
    Kind.ELLIPSE: KindTemplate("ellipse;whiteSpace=wrap;html=1;", 120, 80),
    Kind.CYLINDER: KindTemplate(
        "shape=cylinder3;whiteSpace=wrap;html=1;boundedLbl=1;backgroundOutline=1;size=15;", 60, 80),
    Kind.CLOUD: KindTemplate("ellipse;shape=cloud;whiteSpace=wrap;html=1;", 120, 80),
    Kind.SQUARE: KindTemplate("whiteSpace=wrap;html=1;aspect=fixed;rounded=1;", 80, 80),
    Kind.CIRCLE: KindTemplate("ellipse;whiteSpace=wrap;html=1;aspect=fixed;", 80, 80),
    Kind.STEP: KindTemplate(
        "shape=step;perimeter=stepPerimeter;whiteSpace=wrap;html=1;fixedSize=1;", 120, 80),
    Kind.ACTOR: KindTemplate(
        "shape=umlActor;verticalLabelPosition=bottom;verticalAlign=top;html=1;outlineConnect=0;", 30, 60),
    Kind.TEXT: KindTemplate(
        "text;html=1;strokeColor=none;fillColor=none;align=center;"
        "verticalAlign=middle;whiteSpace=wrap;rounded=0;", 60, 30),
})


def corner_radius_style(current: style_codec.StyleLike, corner_radius: float) -> str:
    """
    Apply a corner radius to a rounded-rectangle style.

    The radius is doubled into an absolute arc size; radii below 1 fall back
    to the default arc size.
    """
    arc_size = corner_radius * 2 if corner_radius >= 1 else DEFAULT_ARC_SIZE
    return style_codec.stringify(style_codec.merge(
        current, {"absoluteArcSize": 1, "arcSize": arc_size}
    ))


def detect_kind(style: str) -> Optional[Kind]:
    """
    Guess which kind a stored style was created from.

    A kind matches when every key of its template appears in the style with
    the same value. The most specific match (most template keys) wins.
    """
    parsed = style_codec.parse(style)
    best: Optional[Kind] = None
    best_size = 0
    for kind, template in KINDS.items():
        expected = style_codec.parse(template.style)
        matched = all(
            key in parsed and (key in template.variable_keys or parsed[key] == value)
            for key, value in expected.items()
        )
        if matched and len(expected) > best_size:
            best, best_size = kind, len(expected)
    return best


class Geometry(BaseModel):
    """Position and size of a node, relative to its parent."""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    relative: bool = False  # True for edge geometries

    def center(self) -> tuple[float, float]:
        """Get the center point of the geometry."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class Cell(BaseModel):
    """
    A node, an edge, or a structural container of the diagram.

    Nodes have ``vertex`` set and a geometry; edges have ``edge`` set and
    source/target ids. The model root and layers have neither flag.
    """
    id: str
    value: Optional[str] = None
    style: Optional[str] = None
    vertex: bool = False
    edge: bool = False
    parent: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    geometry: Optional[Geometry] = None
    kind: Optional[Kind] = Field(default=None, exclude=True)

    @property
    def label(self) -> Optional[str]:
        return self.value

    def style_dict(self) -> dict:
        """Get the style in structured form."""
        return style_codec.parse(self.style)


class DiagramStats(BaseModel):
    """Node and edge counts of a diagram."""
    node_count: int = 0
    edge_count: int = 0
