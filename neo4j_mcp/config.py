from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from neo4j_mcp.errors import ConfigurationError


class Settings(BaseSettings):
    # .env.local wins over .env
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"), env_file_encoding="utf-8", extra="ignore"
    )

    # Neo4j MCP server
    neo4j_mcp_url: str = ""
    neo4j_mcp_api_key: str = ""

    # SSE transport (seconds)
    neo4j_mcp_timeout: float = 5.0
    neo4j_mcp_sse_read_timeout: float = 300.0


def get_settings() -> Settings:
    """Load settings from the environment and .env files.

    Read on every call rather than cached at import, so changes to the
    environment are picked up by the next client that gets constructed.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Neo4j MCP settings: {e}") from e
