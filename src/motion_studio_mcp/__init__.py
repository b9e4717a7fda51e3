"""Motion Studio MCP: text-to-animation generation behind FastMCP tools."""

__version__ = "0.1.0"
