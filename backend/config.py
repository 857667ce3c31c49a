# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Session cookie carrying the same signed token as the JSON body
    SESSION_COOKIE_NAME: str = "access_token"
    COOKIE_SECURE: bool = False

    FRONTEND_URL: str = "http://localhost:5173"

    # Product images, served under /public/images
    UPLOAD_DIR: str = "public/images"

    ALLOW_ADMIN_REGISTRATION: bool = False

    # Seed admin account (populate_db.py)
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""
    ADMIN_NAME: str = "Admin"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
