"""
Centralized configuration for the dialogue engine.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Intent corpus
    corpus_path: Optional[str] = Field(default=None)  # JSON corpus file; built-in defaults when unset

    # Intent scoring (BM25). The normalizer is empirical, tune per corpus.
    bm25_k1: float = Field(default=1.2)
    bm25_b: float = Field(default=0.75)
    bm25_avg_doc_length: float = Field(default=10.0)
    confidence_normalizer: float = Field(default=5.0)
    max_confidence: float = Field(default=0.95)
    confidence_floor: float = Field(default=0.3)
    fallback_confidence: float = Field(default=0.5)

    # Downstream answers
    faq_confidence_threshold: float = Field(default=0.6)

    # Sessions
    session_backend: str = Field(default="memory")  # memory | redis
    session_ttl_seconds: int = Field(default=3600)
    session_history_limit: int = Field(default=50)

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_key_prefix: str = Field(default="dialogue:")

    # Logging
    log_level: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_redis(self) -> bool:
        return self.session_backend.lower() == "redis"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
