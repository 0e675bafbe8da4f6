"""Neo4j MCP client.

Connects to the Neo4j knowledge-graph MCP server over SSE and returns its
tools for use with a LangChain agent. The server URL has the form
``{NEO4J_MCP_URL}/{api_key}/api/mcp/``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from neo4j_mcp.config import Settings, get_settings
from neo4j_mcp.errors import (
    ClientStateError,
    ConfigurationError,
    MCPConnectionError,
    ToolRetrievalError,
)
from neo4j_mcp.transport import MCPToolClient, SSETransport, create_mcp_client

logger = logging.getLogger(__name__)

ClientFactory = Callable[[SSETransport], Awaitable[MCPToolClient]]


class Neo4jMCPClient:
    """Connection lifecycle for a single Neo4j MCP server.

    Connecting is lazy: ``get_tools()`` connects on first use. ``connect()``
    and ``disconnect()`` are serialized, so concurrent callers share one
    connection instead of racing to open several.
    """

    def __init__(
        self,
        api_key: str,
        server_url: str | None = None,
        *,
        settings: Settings | None = None,
        client_factory: ClientFactory = create_mcp_client,
        on_disconnect_error: Callable[[Exception], None] | None = None,
    ):
        if not api_key:
            raise ConfigurationError("Neo4j MCP API key must be a non-empty string")

        self._settings = settings or get_settings()
        base_url = server_url or self._settings.neo4j_mcp_url
        if not base_url:
            raise ConfigurationError("NEO4J_MCP_URL not found in environment variables")

        self.api_key = api_key
        self._base_url = base_url
        # Exact join; api_key is not escaped.
        self._server_url = f"{base_url}/{api_key}/api/mcp/"
        self._client_factory = client_factory
        self._on_disconnect_error = on_disconnect_error

        self._client: MCPToolClient | None = None
        self._connected = False
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Neo4jMCPClient(base_url={self._base_url!r}, connected={self._connected})"

    @property
    def server_url(self) -> str:
        return self._server_url

    async def connect(self) -> None:
        """Open the SSE transport and MCP session. No-op if already connected."""
        async with self._lock:
            if self._connected and self._client is not None:
                logger.info("Neo4j MCP client already connected")
                return

            logger.info("Connecting to Neo4j MCP server at %s via SSE", self._base_url)
            transport = SSETransport.from_url(self._server_url, self._settings)
            try:
                client = await self._client_factory(transport)
            except Exception as e:
                logger.error("Failed to connect to Neo4j MCP server: %s", e)
                raise MCPConnectionError(f"Failed to connect to Neo4j MCP server: {e}") from e

            self._client = client
            self._connected = True
            logger.info("Neo4j MCP client connected")

    async def disconnect(self) -> None:
        """Close the MCP session. Never raises; close errors are logged."""
        async with self._lock:
            client = self._client
            if client is None:
                return

            try:
                await client.close()
            except Exception as e:
                logger.warning("Error during Neo4j MCP client disconnect: %s", e, exc_info=True)
                self._report_disconnect_error(e)
            else:
                logger.info("Neo4j MCP client disconnected")
            finally:
                self._client = None
                self._connected = False

    def _report_disconnect_error(self, error: Exception) -> None:
        if self._on_disconnect_error is None:
            return
        try:
            self._on_disconnect_error(error)
        except Exception:
            logger.debug("on_disconnect_error callback failed", exc_info=True)

    async def get_tools(self) -> dict[str, Any]:
        """Return the server's tools keyed by name, connecting first if needed."""
        if not self._connected or self._client is None:
            await self.connect()

        client = self._client
        if client is None:
            raise ClientStateError("MCP client not initialized")

        logger.info("Retrieving Neo4j MCP tools")
        try:
            tools = await client.tools()
        except Exception as e:
            logger.error("Failed to retrieve Neo4j tools: %s", e)
            raise ToolRetrievalError(f"Failed to retrieve Neo4j tools: {e}") from e

        logger.info("Retrieved %d Neo4j tools", len(tools))
        return tools

    def is_connected(self) -> bool:
        return self._connected

    def get_client(self) -> MCPToolClient | None:
        """The underlying MCP client, for callers that need the session directly."""
        return self._client

    async def __aenter__(self) -> "Neo4jMCPClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
