"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]

DEFAULT_SUBREDDITS = [
    "SideProject",
    "Entrepreneur",
    "startups",
    "Business_Ideas",
    "roastmystartup",
]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Idea Graph API"
    database_url: str = "sqlite+pysqlite:///./ideas.db"
    log_level: str = "INFO"

    mistral_api_key: str | None = None
    mistral_model: str = "mistral-small-latest"
    mistral_base_url: str = "https://api.mistral.ai/v1"

    embedding_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "embeddinggemma"
    enable_pgvector: bool = False

    http_timeout_seconds: int = 60
    reddit_user_agent: str = "linux:ideagraph-crawler:v1.0.0"

    crawler_subreddits: list[str] = Field(default_factory=lambda: list(DEFAULT_SUBREDDITS))
    crawler_post_limit: int = 25
    crawler_rate_limit_secs: float = 20.0
    crawler_include_meta_comments: bool = False

    problem_distance_threshold: float = 0.2
    problem_neighbor_limit: int = 5
    cluster_similarity_threshold: float = 0.6
    cluster_neighbor_limit: int = 100

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
