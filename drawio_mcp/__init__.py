"""drawio MCP server - tools for editing .drawio.svg diagrams."""

__version__ = "1.0.0"
