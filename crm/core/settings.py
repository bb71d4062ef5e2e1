from typing import Literal, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    APP_NAME: str = "CRM Demo API"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["local", "dev", "staging", "prod"] = "local"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"      # CSV o '*'
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: SecretStr = SecretStr("sqlite+aiosqlite:///./crm.db")
    DATABASE_SSL: bool = False

    # Client
    CLIENT_API_URL: str = "http://localhost:5000/api"
    CLIENT_TIMEOUT_SEC: float = 15
    CLIENT_PAGE_SIZE: int = 10
    CLIENT_IMPORT_CONCURRENCY: int = 10
    CLIENT_THEME_FILE: str = ".crm_theme"
    RECENT_DAYS: int = 7

    # -------- validators (presencia, formato) --------
    @field_validator("DATABASE_URL")
    @classmethod
    def _required_secret(cls, v, info):
        if v is None or (hasattr(v, "get_secret_value") and v.get_secret_value() == ""):
            raise ValueError(f"{info.field_name} is required (set it in .env)")
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = (v or "").strip().strip("/")
        return f"/{v}" if v else ""

    @field_validator("CLIENT_TIMEOUT_SEC", "CLIENT_PAGE_SIZE", "CLIENT_IMPORT_CONCURRENCY", "RECENT_DAYS")
    @classmethod
    def _positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        return ["*"] if self.CORS_ORIGINS.strip() == "*" else [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
