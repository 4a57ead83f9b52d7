"""
Exception types raised by the diagram core.

Every error the core raises on purpose derives from DiagramError, so the
tool layer can tell caller mistakes apart from I/O failures (which propagate
as plain OSError).
"""


class DiagramError(Exception):
    """Base class for diagram core errors."""


class InvalidInputError(DiagramError, ValueError):
    """A request field is missing or has a value outside its allowed set."""


class UnsupportedAlgorithmError(InvalidInputError):
    """The requested layout algorithm is not one of the known algorithms."""


class InvalidDirectionError(InvalidInputError):
    """The hierarchical layout was given an unknown direction."""


class CellNotFoundError(DiagramError, LookupError):
    """An operation referenced a cell id that is not in the graph."""

    def __init__(self, cell_id: str, role: str = "Node"):
        self.cell_id = cell_id
        super().__init__(f"{role} not found: {cell_id}")


class MalformedDocumentError(DiagramError, ValueError):
    """A stored diagram could not be extracted, decoded or parsed."""
