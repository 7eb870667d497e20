from __future__ import annotations

from pydantic import Field

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except Exception as e:  # pragma: no cover
    raise RuntimeError(
        "pydantic-settings is required. Install with: pip install pydantic-settings"
    ) from e


class GraphRepositorySettings(BaseSettings):
    """Configuration for graph-repository.

    Environment variables are prefixed with GRAPH_REPOSITORY_.
    """

    model_config = SettingsConfigDict(env_prefix="GRAPH_REPOSITORY_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")
    default_page_size: int = Field(default=20, gt=0)

    # --- Neo4j ---
    neo4j_uri: str = Field(default="bolt://localhost:7687")
    neo4j_user: str = Field(default="neo4j")
    neo4j_password: str | None = Field(default=None)
    neo4j_database: str = Field(default="neo4j")
    fetch_size: int = Field(default=1000, gt=0, description="Records per round trip on lazy reads")


settings = GraphRepositorySettings()
