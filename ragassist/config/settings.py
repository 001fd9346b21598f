"""Application settings loaded from environment variables via pydantic-settings.

Values come from (highest priority first) environment variables, then the
``.env`` file in the working directory, then the defaults below.  Field
``openai_api_key`` maps to env var ``OPENAI_API_KEY`` and so on.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ragassist application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === AI Provider ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_embedding_model: str = "text-embedding-3-small"
    openai_chat_model: str = "gpt-4o-mini"
    openai_timeout: float = 60.0

    # === Retry policy ===
    provider_max_retries: int = 5
    provider_base_delay: float = 0.5

    # === Remote vector index (ChromaDB) ===
    # Empty host = embedded persistent client at chromadb_persist_dir.
    chroma_enabled: bool = True
    chroma_host: str = ""
    chroma_port: int = 8000
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "ragassist_chunks"

    # === Relational store ===
    database_path: str = "data/ragassist.db"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
    config_path: str = "config/config.yaml"

    def remote_store_configured(self) -> bool:
        """Return ``True`` when the remote vector index should be tried at startup."""
        return self.chroma_enabled and bool(self.chroma_host or self.chromadb_persist_dir.strip())
