"""
Application configuration
Values come from environment variables, with development fallbacks
"""
import os
from datetime import timedelta
from pathlib import Path

APP_DIR = Path(__file__).parent


def database_url_from_env():
    """Read DATABASE_URL, falling back to a local SQLite file.

    Render and Heroku hand out ``postgres://`` URLs, which SQLAlchemy no
    longer accepts.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        return f"sqlite:///{APP_DIR / 'expenses.db'}"
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret")

    # Bearer tokens
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET", "dev-jwt-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=30)
    JWT_TOKEN_LOCATION = ["headers"]

    DATABASE_URL = database_url_from_env()

    # CSV uploads are staged here and removed after each request
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(APP_DIR / "uploads"))
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    MAX_PAGE_SIZE = 100


class TestingConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    DATABASE_URL = "sqlite:///:memory:"
