"""
Runtime settings for the recruitment pipeline API.

Values come from the environment or a local ``.env`` file. Staff tokens are
issued by the external auth provider, so only the verification key and
algorithm live here.
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # PostgreSQL
    postgres_user: str = Field(default="admin", env="POSTGRES_USER")
    postgres_password: str = Field(default="admin", env="POSTGRES_PASSWORD")
    postgres_db: str = Field(default="recruitment", env="POSTGRES_DB")
    postgres_host: str = Field(default="db", env="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, env="POSTGRES_PORT")

    # dev | test | prod; dev gets SQL echo and console logs
    app_env: str = Field(default="dev", env="APP_ENV")

    # Token verification
    jwt_secret: str = Field(
        default="change-me-in-production-use-a-secure-random-string",
        env="JWT_SECRET"
    )
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")

    # Currency stamped on placements whose terms leave it blank
    default_fee_currency: str = Field(default="GBP", env="DEFAULT_FEE_CURRENCY")

    # Admin frontend origins
    allowed_origins: List[str] = [
        origin for origin in [
            "http://localhost:5173",  # Vite dev server
            "http://localhost:8080",
            os.getenv("FRONTEND_URL")
        ] if origin is not None
    ]

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
