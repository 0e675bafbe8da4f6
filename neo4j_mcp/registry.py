"""Holds at most one Neo4jMCPClient.

Applications can own a ``ClientRegistry`` themselves. The module-level
functions use a process-wide default registry.
"""

import asyncio
import logging

from neo4j_mcp.client import ClientFactory, Neo4jMCPClient
from neo4j_mcp.config import Settings, get_settings
from neo4j_mcp.errors import ConfigurationError
from neo4j_mcp.transport import create_mcp_client

logger = logging.getLogger(__name__)


class ClientRegistry:
    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory = create_mcp_client,
    ):
        self._settings = settings
        self._client_factory = client_factory
        self._instance: Neo4jMCPClient | None = None
        # Background disconnects started by reset(); held until they finish.
        self._pending: set[asyncio.Task] = set()

    @property
    def instance(self) -> Neo4jMCPClient | None:
        return self._instance

    def get(self, api_key: str | None = None) -> Neo4jMCPClient:
        """Return the registered client, creating it on first call.

        ``api_key`` is only used when a client is created; it falls back to
        NEO4J_MCP_API_KEY. An existing client is returned as-is and is not
        reconnected.
        """
        if self._instance is None:
            settings = self._settings or get_settings()
            key = api_key or settings.neo4j_mcp_api_key
            if not key:
                raise ConfigurationError(
                    "NEO4J_MCP_API_KEY not found. "
                    "Set it in .env.local or pass it to get_neo4j_mcp_client()"
                )
            self._instance = Neo4jMCPClient(
                key, settings=settings, client_factory=self._client_factory
            )
        return self._instance

    def reset(self) -> None:
        """Drop the registered client, disconnecting it in the background.

        Inside a running event loop the disconnect is scheduled as a task and
        not awaited. Outside one, the loop the client was opened on has already
        shut down and cancelled its session, so the client is only marked
        disconnected. Errors are logged, never raised.
        """
        instance = self._instance
        if instance is None:
            return
        self._instance = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            if instance.get_client() is None:
                return
            try:
                asyncio.run(instance.disconnect())
            except Exception:
                logger.error("Failed to disconnect Neo4j MCP client on reset", exc_info=True)
            return

        logger.debug("Scheduling background disconnect of Neo4j MCP client")
        task = loop.create_task(instance.disconnect())
        self._pending.add(task)
        task.add_done_callback(self._disconnect_done)

    def _disconnect_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background disconnect of Neo4j MCP client failed: %s", error)

    async def aclose(self) -> None:
        """Drop the registered client and wait for every disconnect to finish."""
        instance = self._instance
        self._instance = None
        if instance is not None:
            await instance.disconnect()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


_default_registry = ClientRegistry()


def get_neo4j_mcp_client(api_key: str | None = None) -> Neo4jMCPClient:
    """Get or create the process-wide Neo4j MCP client."""
    return _default_registry.get(api_key)


def reset_neo4j_mcp_client() -> None:
    """Reset the process-wide client (for tests or reconfiguration)."""
    _default_registry.reset()
