"""Clone MCP server interfaces and serve decoys that answer with canned content."""

__version__ = "1.0.0"
