"""Application settings loaded from environment variables / .env file."""
import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """
    Runtime configuration.

    List values (PROTECTED_PREFIXES, ADMIN_EMAILS, CORS_ORIGINS) are read
    from the environment as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./haircare.db"
    DB_TIMEOUT_SECONDS: float = 10.0
    DB_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Knowledge data
    RULES_PATH: Optional[Path] = None
    PROMPTS_PATH: Optional[Path] = None

    # Route namespaces used by the session gate
    ADMIN_PREFIX: str = "/admin"
    PROTECTED_PREFIXES: list[str] = ["/chat", "/profile"]
    SIGN_IN_PATH: str = "/auth"
    LANDING_PATH: str = "/chat"

    # Auth sessions
    SESSION_TTL_HOURS: int = 24 * 7
    ADMIN_EMAILS: list[str] = []

    # Conversation list page size
    CONVERSATION_LIST_LIMIT: int = 50

    CORS_ORIGINS: list[str] = ["*"]

    @property
    def rules_file(self) -> Path:
        return self.RULES_PATH or DATA_DIR / "responses.json"

    @property
    def prompts_file(self) -> Path:
        return self.PROMPTS_PATH or DATA_DIR / "prompts.json"


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
