"""
Diagram validation - Check graphs for structural issues.

Removing a node never removes the edges attached to it, so stored diagrams
can hold dangling references. This module reports them along with other
structural problems.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .models import DEFAULT_PARENT_ID, ROOT_ID

if TYPE_CHECKING:
    from .graph import Graph


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    cell_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.cell_id:
            result["cell_id"] = self.cell_id
        return result


def validate_graph(graph: "Graph") -> list[ValidationIssue]:
    """
    Validate a graph and return a list of issues.

    Checks for:
    - Edges whose source/target no longer exists - ERROR
    - Cells whose parent no longer exists - ERROR
    - Orphan nodes (no connections) - WARNING
    - Self-referencing edges - WARNING
    - Empty diagram - INFO
    """
    issues: list[ValidationIssue] = []

    nodes = graph.vertices()
    edges = graph.edges()

    if not nodes and not edges:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no nodes"
        ))
        return issues

    for cell in graph:
        if cell.id in (ROOT_ID, DEFAULT_PARENT_ID):
            continue
        if cell.parent is not None and cell.parent not in graph:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Cell references non-existent parent: {cell.parent}",
                cell_id=cell.id
            ))

    connected: set[str] = set()
    for edge in edges:
        for role, endpoint in (("source", edge.source), ("target", edge.target)):
            if endpoint is None:
                continue
            connected.add(endpoint)
            if endpoint not in graph:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Edge references non-existent {role} node: {endpoint}",
                    cell_id=edge.id
                ))
        if edge.source is not None and edge.source == edge.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing edge (node points to itself)",
                cell_id=edge.id
            ))

    orphans = [n for n in nodes if n.id not in connected]
    if orphans:
        labels = ", ".join(f"{n.value or ''} ({n.id})".strip() for n in orphans)
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {labels}"
        ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
