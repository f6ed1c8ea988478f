"""
Taskfiles MCP Server

Exposes Git-backed task files, drafts and version history as MCP tools.
"""

__version__ = "0.1.0"
