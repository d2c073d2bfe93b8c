"""Shared FastMCP instance.

Tool modules import `mcp` from here; server.py imports them to register their tools.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "CIF Pipeline",
    instructions="Network Rail CIF schedule ingestion - process feeds and transform schedules",
)
