from __future__ import annotations

import os
from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv


load_dotenv()


class Settings(BaseSettings):
    DB_URL: str = Field(default=os.getenv("DB_URL", "sqlite:///./nivasa.db"))
    JWT_SECRET: str = Field(default=os.getenv("JWT_SECRET", "change_me"))
    JWT_ALG: str = Field(default=os.getenv("JWT_ALG", "HS256"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    )
    BCRYPT_ROUNDS: int = Field(default=int(os.getenv("BCRYPT_ROUNDS", "10")))
    APARTMENT_CODE_LENGTH: int = Field(default=int(os.getenv("APARTMENT_CODE_LENGTH", "4")))
    CORS_ORIGINS: str = Field(default=os.getenv("CORS_ORIGINS", "*"))
    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))
    LOG_FORMAT: str = Field(default=os.getenv("LOG_FORMAT", "standard"))

    class Config:
        case_sensitive = False

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
