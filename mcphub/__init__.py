"""
MCP Gateway Hub.

Launches a set of stdio MCP servers, wraps each one in a supergateway adapter
listening on its own port, and writes a client settings file pointing at the
servers that came up.
"""

__version__ = "1.0.0"
