"""Client for the Neo4j knowledge-graph MCP server over SSE."""

from neo4j_mcp.client import Neo4jMCPClient
from neo4j_mcp.errors import (
    ClientStateError,
    ConfigurationError,
    MCPConnectionError,
    Neo4jMCPError,
    ToolRetrievalError,
)
from neo4j_mcp.registry import ClientRegistry, get_neo4j_mcp_client, reset_neo4j_mcp_client

__all__ = [
    "ClientRegistry",
    "ClientStateError",
    "ConfigurationError",
    "MCPConnectionError",
    "Neo4jMCPClient",
    "Neo4jMCPError",
    "ToolRetrievalError",
    "get_neo4j_mcp_client",
    "reset_neo4j_mcp_client",
]
