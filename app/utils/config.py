"""
Configuration management for Entropy Sorter.

Uses pydantic-settings to load configuration from environment variables
and .env files. Routing rules live in a separate YAML file, see
app.utils.rules_loader.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Watch Configuration
    watch_root: Path = Path("entropy")
    rules_file: Path = Path("rules.yaml")
    log_level: str = "INFO"
    settle_delay: float = 0.5  # seconds
    stability_timeout: float = 0.0  # seconds, 0 disables the size check

    # Placement Configuration
    fallback_folder: str = "Unsorted"
    collision_policy: Literal["suffix", "skip", "overwrite"] = "suffix"

    # Suggestion Worker Configuration
    suggestion_provider: Literal["ollama", "openrouter", "gemini"] = "ollama"
    suggestion_interval: float = 3.0  # seconds between requests
    suggestion_queue_size: int = 100
    suggestion_timeout: float = 30.0
    share_folder_structure: bool = True

    # Ollama Configuration
    ollama_url: str = "http://localhost:11434"
    ollama_chat_model: str = "llama3.2"

    # OpenRouter Configuration
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "anthropic/claude-3.5-sonnet"
    openrouter_url: str = "https://openrouter.ai/api/v1"

    # Gemini Configuration
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_watch_root(self) -> Path:
        """Watched root as an absolute path."""
        return self.watch_root.expanduser().absolute()

    def get_default_model(self) -> str:
        """Model used when the rules file does not name one."""
        return {
            "ollama": self.ollama_chat_model,
            "openrouter": self.openrouter_model,
            "gemini": self.gemini_model,
        }[self.suggestion_provider]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
