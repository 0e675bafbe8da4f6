"""Errors raised by the Neo4j MCP client."""


class Neo4jMCPError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(Neo4jMCPError):
    """Base URL or API key missing."""


class MCPConnectionError(Neo4jMCPError, ConnectionError):
    """Transport or MCP session could not be created."""


class ClientStateError(Neo4jMCPError):
    """No MCP client available after connecting."""


class ToolRetrievalError(Neo4jMCPError):
    """Listing tools from the MCP server failed."""
