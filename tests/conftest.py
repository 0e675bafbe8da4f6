import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from neo4j_mcp import registry
from neo4j_mcp.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and .env files."""
    for key in (
        "NEO4J_MCP_URL",
        "NEO4J_MCP_API_KEY",
        "NEO4J_MCP_TIMEOUT",
        "NEO4J_MCP_SSE_READ_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(registry, "_default_registry", registry.ClientRegistry())


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        neo4j_mcp_url="https://example.com",
        neo4j_mcp_api_key="env-key",
    )


@pytest.fixture
def mcp_client():
    """Stand-in for an initialized MCPToolClient."""
    client = AsyncMock()
    client.tools.return_value = {"read_neo4j_cypher": MagicMock(), "get_neo4j_schema": MagicMock()}
    return client


@pytest.fixture
def client_factory(mcp_client):
    return AsyncMock(return_value=mcp_client)


@pytest.fixture
def sse_calls():
    """Records opened and closed SSE streams from a fake sse_client."""
    return {"opened": [], "closed": []}


@pytest.fixture
def fake_sse_client(sse_calls):
    # Like the real sse_client, must be exited by the task that entered it.
    @asynccontextmanager
    async def _sse_client(url, **kwargs):
        sse_calls["opened"].append((url, kwargs))
        entered_in = asyncio.current_task()
        try:
            yield ("read-stream", "write-stream")
        finally:
            if asyncio.current_task() is not entered_in:
                raise RuntimeError(
                    "Attempted to exit cancel scope in a different task than it was entered in"
                )
            sse_calls["closed"].append(url)

    return _sse_client


@pytest.fixture
def session():
    session = AsyncMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = None
    return session


@pytest.fixture
def patched_sdk(fake_sse_client, session):
    session_cls = MagicMock(return_value=session)
    with (
        patch("neo4j_mcp.transport.sse_client", fake_sse_client),
        patch("neo4j_mcp.transport.ClientSession", session_cls),
    ):
        yield session_cls

