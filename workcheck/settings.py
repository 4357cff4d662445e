# workcheck/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # SQLAlchemy/SQLModel compatible URL for SQLite, or a plain file path:
    DB_PATH: str = "sqlite:///./data/workcheck.sqlite"

    # git executable and the upper bound (seconds) for a single invocation
    GIT_BINARY: str = "git"
    GIT_TIMEOUT: float = 30.0

    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["*"]

    LOG_LEVEL: Optional[str] = "INFO"

    # pydantic-settings uses 'model_config' for BaseSettings configuration
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
