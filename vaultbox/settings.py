"""Settings and configuration."""
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    # Core
    ENV: str = "development"  # development, production
    PORT: int = 3001
    LOG_LEVEL: str = "INFO"
    CORS_ORIGIN: str = "http://localhost:5173"

    # Security
    # Required; validated by FieldCipher at startup, never logged
    MASTER_ENCRYPTION_KEY: str = ""

    # Document store
    STORE_BACKEND: str = "sql"  # sql, memory
    DATABASE_URL: str = "sqlite:///./vaultbox.db"

    # Identity provider (external)
    AUTH_JWKS_URL: Optional[str] = None
    AUTH_ISSUER: Optional[str] = None
    AUTH_AUDIENCE: Optional[str] = None
    AUTH_SECRET: Optional[str] = None

    # Session cookie
    COOKIE_SECURE: bool = False
    SESSION_TTL_SECONDS: int = 60 * 60 * 12  # 12h

    # Client log ingestion (optional tokens)
    LOG_WRITE_TOKEN: Optional[str] = None
    LOG_READ_TOKEN: Optional[str] = None

    model_config = {
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
    }

    @property
    def is_prod(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
