from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Reviews API settings, read from the environment or a local .env file.
    Only the service-role key is used at runtime; reviews, orders and
    profiles are all reached with it.
    """

    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    API_PREFIX: str = "/api"
    APP_NAME: str = "Storefront Reviews API"
    ALLOWED_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
