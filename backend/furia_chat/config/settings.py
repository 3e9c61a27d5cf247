"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "ChatFurioso API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Gemini generation API
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_api_version: str = "v1beta"
    gemini_timeout: float = 60.0  # seconds, whole call
    gemini_connect_timeout: float = 10.0  # seconds

    # Default generation parameters
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9
    generation_top_k: Optional[int] = None

    # Database
    database_url: str = "sqlite:///./data/furia_chat.db"
    database_echo: bool = False

    # Conversation window (user+model exchanges sent as context)
    max_history_turns: int = 5

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/furia_chat.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
