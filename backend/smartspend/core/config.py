import os
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "SmartSpend API"
    API_PREFIX: str = "/api"
    SECRET_KEY: str = "super_secret_key_change_me_in_prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Unique name so a platform-provided DATABASE_URL can still be picked up as the default
    SMARTSPEND_DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./smartspend.db")

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

settings = Settings()
