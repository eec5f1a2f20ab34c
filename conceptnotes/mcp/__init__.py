"""FastMCP tool surface."""
