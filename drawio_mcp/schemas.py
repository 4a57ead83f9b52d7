"""
Request models for MCP tool arguments.

Field Naming Convention:
- Nodes use `label`; `title` is accepted on input and converted
- Edges use `source` and `target`; `from`/`to` are accepted on input and converted
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, model_validator

from drawio_core import style as style_codec

StyleInput = Union[str, dict[str, Union[str, bool, int, float, None]]]


def _rename(data: Any, aliases: dict[str, str]) -> Any:
    if isinstance(data, dict):
        data = dict(data)
        for old, new in aliases.items():
            if old in data and new not in data:
                data[new] = data.pop(old)
    return data


class NodeSpec(BaseModel):
    """A node to add to a diagram."""
    id: str = Field(min_length=1, description="Unique identifier for the node")
    label: Optional[str] = Field(None, description='Display label (can contain newlines "\\n")')
    kind: str = Field("rectangle", description="Shape/kind of the node")
    parent: str = Field("root", description="Parent node ID (root for top-level nodes)")
    x: float = 10
    y: float = 10
    width: Optional[float] = Field(None, description="Custom width (optional)")
    height: Optional[float] = Field(None, description="Custom height (optional)")
    style: Optional[StyleInput] = Field(None, description="Style entries layered over the kind's default")
    corner_radius: Optional[float] = Field(None, description="Corner radius for rounded-rectangle nodes")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'title' field to 'label'."""
        return _rename(data, {"title": "label"})


class NodeEdit(BaseModel):
    """Changes to an existing node or edge (partial update)."""
    id: str = Field(min_length=1)
    label: Optional[str] = None
    kind: Optional[str] = Field(None, description="Replaces the whole style with the kind's default")
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    corner_radius: Optional[float] = None

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'title' field to 'label'."""
        return _rename(data, {"title": "label"})


class EdgeSpec(BaseModel):
    """A connection between two nodes."""
    source: str = Field(min_length=1, description="Source node ID")
    target: str = Field(min_length=1, description="Target node ID")
    label: Optional[str] = Field(None, description="Connection label (optional)")
    dashed: bool = Field(False, description="Whether the connection should be dashed")
    reverse: bool = Field(False, description="Whether to reverse the connection direction")
    style: Optional[StyleInput] = None

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'from'/'to'/'title' fields to 'source'/'target'/'label'."""
        return _rename(data, {"from": "source", "to": "target", "title": "label"})

    def style_overrides(self) -> dict:
        """Caller style with the dashed/reverse flags folded in."""
        overrides: dict = {}
        if self.dashed:
            overrides["dashed"] = 1
        if self.reverse:
            overrides["reverse"] = 1
        return style_codec.merge(overrides, self.style)


class LayoutSpec(BaseModel):
    """A layout to run after nodes are inserted."""
    algorithm: str = Field(description="hierarchical, circle, organic, compact-tree, radial-tree, partition or stack")
    options: Optional[dict[str, Any]] = Field(None, description='e.g. {"direction": "left-right"} for hierarchical')
