"""Application configuration."""
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.
    
    Environment variables take precedence over .env file.
    This makes it compatible with Docker (uses env vars) and 
    local development (uses .env file).
    """
    
    APP_NAME: str = "BoxBox"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    
    # Database
    DATABASE_URL: str = "sqlite:///./boxbox.db"
    
    # JWT Settings
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    
    # Web
    CORS_ORIGINS: List[str] = ["*"]
    PUBLIC_APP_URL: str = "http://localhost:3000"
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    
    # Inventory defaults
    DEFAULT_BOX_COLOR: str = "bg-blue-500"
    ITEM_PLACEHOLDER_IMAGE: str = "/item-placeholder.svg"
    ITEMS_PAGE_SIZE: int = 20
    ITEMS_PAGE_MAX: int = 50
    
    # Image analysis (OpenRouter, OpenAI-compatible API)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    ANALYSIS_MODEL_FAST: str = "openai/gpt-4o-mini"
    ANALYSIS_MODEL_BALANCED: str = "openai/gpt-4o"
    ANALYSIS_MODEL_HIGH: str = "meta-llama/llama-4-maverick"
    # Models without structured output support; answered in text mode
    ANALYSIS_TEXT_MODE_MODELS: List[str] = ["meta-llama/llama-4-maverick"]
    ANALYSIS_TIMEOUT_SECONDS: float = 60.0
    
    model_config = SettingsConfigDict(
        # Only load .env file if it exists (for local dev)
        # Docker will use environment variables directly
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        # Environment variables take precedence over .env file
        extra="ignore",
    )


settings = Settings()
