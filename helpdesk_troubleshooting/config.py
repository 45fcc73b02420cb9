from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Security: Read from .env, never hardcode keys here
    OPENAI_API_KEY: str | None = None  # Only needed by the vector guide backend
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Database Configuration
    # SQLite by default so the service boots without infrastructure
    DATABASE_URL: str = "sqlite:///./helpdesk.db"

    # Storage / retrieval selection
    SESSION_STORE: Literal["memory", "sql"] = "memory"
    GUIDE_BACKEND: Literal["static", "vector"] = "static"

    # Retrieval Parameters
    SEARCH_TOP_K: int = 5
    SEARCH_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
