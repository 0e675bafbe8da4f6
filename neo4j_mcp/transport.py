"""SSE transport and MCP session factory.

Wraps the MCP SDK's SSE client and session behind a small object that
exposes the server's tools as LangChain tools, keyed by name.

The SSE stream and session hold anyio task groups, which must be exited
from the task that entered them. Each session therefore lives in its own
owner task; ``close()`` signals that task and waits for it, so a session
can be closed from any task on the loop it was opened on.
"""

import asyncio
import logging
from dataclasses import dataclass

from langchain_core.tools import BaseTool
from langchain_mcp_adapters.tools import load_mcp_tools
from mcp import ClientSession
from mcp.client.sse import sse_client

from neo4j_mcp.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class SSETransport:
    """Where and how to open an SSE connection. Performs no I/O."""

    url: str
    timeout: float = 5.0
    sse_read_timeout: float = 300.0

    @classmethod
    def from_url(cls, url: str, settings: Settings) -> "SSETransport":
        return cls(
            url=url,
            timeout=settings.neo4j_mcp_timeout,
            sse_read_timeout=settings.neo4j_mcp_sse_read_timeout,
        )


class MCPToolClient:
    """An initialized MCP session and the task that keeps it open."""

    def __init__(self, session: ClientSession, stop: asyncio.Event, owner: asyncio.Task):
        self._session = session
        self._stop = stop
        self._owner = owner
        self._closed = False

    @property
    def session(self) -> ClientSession:
        return self._session

    async def tools(self) -> dict[str, BaseTool]:
        """Return the server's tools as LangChain tools, keyed by tool name."""
        tools = await load_mcp_tools(self._session)
        return {tool.name: tool for tool in tools}

    async def close(self) -> None:
        """Shut the session down and wait for it. Raises teardown errors."""
        if self._closed:
            return
        self._closed = True

        # Already over: the stream failed, or the loop it ran on shut down.
        if self._owner.done():
            if not self._owner.cancelled():
                self._owner.result()
            return

        self._stop.set()
        await self._owner


async def _run_session(
    transport: SSETransport, ready: asyncio.Future, stop: asyncio.Event
) -> None:
    try:
        async with sse_client(
            transport.url,
            timeout=transport.timeout,
            sse_read_timeout=transport.sse_read_timeout,
        ) as (read, write):
            async with ClientSession(read, write) as session:
                await session.initialize()
                logger.debug("MCP session initialized")
                ready.set_result(session)
                await stop.wait()
    except asyncio.CancelledError:
        if not ready.done():
            ready.cancel()
        raise
    except Exception as e:
        # Startup errors go to the caller of create_mcp_client.
        if not ready.done():
            ready.set_exception(e)
            return
        raise
    logger.debug("MCP session closed")


async def create_mcp_client(transport: SSETransport) -> MCPToolClient:
    """Open an SSE stream, start an MCP session on it and initialize it.

    If startup fails, the stream is closed again before the error
    propagates.
    """
    loop = asyncio.get_running_loop()
    ready = loop.create_future()
    stop = asyncio.Event()
    owner = loop.create_task(_run_session(transport, ready, stop))
    try:
        session = await ready
    except asyncio.CancelledError:
        owner.cancel()
        raise
    return MCPToolClient(session, stop, owner)
