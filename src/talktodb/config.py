import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Relational store
    database_url: str = os.getenv("DATABASE_URL", "mysql+aiomysql://host:@localhost/talktodb")
    table_name: str = os.getenv("TABLE_NAME", "movies")
    csv_file: str = os.getenv("CSV_FILE", "movies.csv")
    load_csv_on_startup: bool = os.getenv("LOAD_CSV_ON_STARTUP", "false").lower() == "true"

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_index_name: str = os.getenv("CACHE_INDEX_NAME", "talktodb-agent")
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.95"))
    cache_top_k: int = int(os.getenv("CACHE_TOP_K", "1"))
    # "redis" or "memory"
    cache_backend: str = os.getenv("CACHE_BACKEND", "redis")

    # Embedding
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "embeddinggemma")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "768"))
    # "ollama" or "local" (sentence-transformers)
    embedding_backend: str = os.getenv("EMBEDDING_BACKEND", "ollama")

    # Generation
    generation_model: str = os.getenv("GENERATION_MODEL", "llama3.1")

    # Ollama
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Upper bound for every external call made while answering a question
    step_timeout: float = float(os.getenv("STEP_TIMEOUT", "30.0"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not -1 <= self.cache_similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be between -1 and 1 for cosine similarity")

        if self.cache_top_k < 1:
            raise ValueError(f"CACHE_TOP_K must be at least 1, got {self.cache_top_k}")

        if self.cache_backend not in ("redis", "memory"):
            raise ValueError(f"CACHE_BACKEND must be 'redis' or 'memory', got {self.cache_backend!r}")

        if self.embedding_backend not in ("ollama", "local"):
            raise ValueError(f"EMBEDDING_BACKEND must be 'ollama' or 'local', got {self.embedding_backend!r}")

        if self.embedding_dimension <= 0:
            raise ValueError(f"EMBEDDING_DIMENSION must be positive, got {self.embedding_dimension}")

        if self.step_timeout <= 0:
            raise ValueError(f"STEP_TIMEOUT must be positive, got {self.step_timeout}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
