"""
Configuration for vector store operations.

Uses Pydantic BaseSettings for environment variable support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreConfig(BaseSettings):
    """
    Configuration for AlloyDBVectorStore.

    All settings can be overridden via environment variables with
    VECTORSTORE_ prefix (e.g., VECTORSTORE_COMMAND_TIMEOUT=30).
    """

    default_max_results: int = Field(
        default=4,
        ge=1,
        le=10000,
        description="Default number of matches returned by search",
    )

    command_timeout: float | None = Field(
        default=60.0,
        gt=0.0,
        description="Seconds allowed for each database command (None disables)",
    )

    # Rows per executemany call; all chunks share one transaction
    insert_batch_size: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="Rows sent per executemany call during add_all",
    )

    model_config = SettingsConfigDict(env_prefix="VECTORSTORE_")
