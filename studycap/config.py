from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Literal, Optional

# Get the project root directory (parent of studycap folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = f"sqlite:///{PROJECT_ROOT / 'studycap.db'}"

    # AI Provider Configuration
    ai_provider: str = "ollama"  # "ollama" or "claude"

    # Ollama settings (for local development)
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:latest"

    # Claude API settings (for production)
    claude_api_key: str = ""
    claude_model: str = "claude-3-5-sonnet-20241022"

    # Planning defaults
    default_plan_days: int = Field(default=7, ge=1)
    default_task_minutes: int = Field(default=30, gt=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_file: Optional[str] = None

settings = Settings()
