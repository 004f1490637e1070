from __future__ import annotations

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    SERVICE_NAME: str = Field(default="amul-inventory-api")
    LOG_LEVEL: str = Field(default="INFO")
    PORT: int = Field(default=8000)
    CORS_ALLOW_ORIGINS: str = Field(default="*")  # comma-separated

    # Firestore
    # Empty project id means the ADC default project; FIRESTORE_EMULATOR_HOST is read by the client library.
    FIRESTORE_PROJECT_ID: str = Field(default="")
    FIRESTORE_DATABASE: str = Field(default="amul-inventory")
    FIRESTORE_PROBE_TIMEOUT_S: float = Field(default=5.0)

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


settings = Settings()
