"""
Model Context Protocol (MCP) server core.

Protocol types, the request dispatcher and the stdio and HTTP transports
that front it.
"""
