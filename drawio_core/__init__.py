"""
drawio core - Diagram model, layouts, and the .drawio.svg codec.

This package holds everything the MCP tools need to load, mutate and save
diagrams, with no dependency on the tool protocol itself.
"""

from .errors import (
    DiagramError,
    InvalidInputError,
    UnsupportedAlgorithmError,
    InvalidDirectionError,
    CellNotFoundError,
    MalformedDocumentError,
)
from .models import (
    # Archetypes
    Kind,
    KINDS,
    # Core models
    Cell,
    Geometry,
    DiagramStats,
)
from .graph import Graph, edge_id
from .layout import apply_layout, validate_layout, LAYOUTS
from .serializer import to_xml, from_xml
from .container import embed, extract, encode_payload, decode_payload
from .files import GraphFileManager, file_manager
from .validation import validate_graph, validation_summary, ValidationIssue, IssueSeverity

__all__ = [
    # Errors
    "DiagramError",
    "InvalidInputError",
    "UnsupportedAlgorithmError",
    "InvalidDirectionError",
    "CellNotFoundError",
    "MalformedDocumentError",
    # Models
    "Kind",
    "KINDS",
    "Cell",
    "Geometry",
    "DiagramStats",
    # Graph
    "Graph",
    "edge_id",
    # Layout
    "apply_layout",
    "validate_layout",
    "LAYOUTS",
    # Codecs
    "to_xml",
    "from_xml",
    "embed",
    "extract",
    "encode_payload",
    "decode_payload",
    # Files
    "GraphFileManager",
    "file_manager",
    # Validation
    "validate_graph",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
]
