"""Core request pipeline — rate limiting, response cache, and the Semrush client.

This module has no dependency on MCP or FastMCP. The server layer imports
from here and adds nothing but transport wiring.
"""
