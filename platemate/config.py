import os
from datetime import timedelta


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///platemate.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DEFAULT_UPLOAD_FOLDER = "/var/data/uploads" if os.path.isdir("/var/data") else "uploads"
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", DEFAULT_UPLOAD_FOLDER)
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))
    IMAGE_MAX_DIMENSION = int(os.getenv("IMAGE_MAX_DIMENSION", "1024"))
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = env_flag("SESSION_COOKIE_SECURE")
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "platemate_session")
    PERMANENT_SESSION_LIFETIME = timedelta(
        hours=int(os.getenv("SESSION_LIFETIME_HOURS", "168"))
    )

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4.1-mini")
    OPENAI_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4.1-mini")
    OPENAI_COACH_MODEL = os.getenv("OPENAI_COACH_MODEL", os.getenv("OPENAI_TEXT_MODEL", "gpt-4.1-mini"))

    USDA_API_KEY = os.getenv("USDA_API_KEY") or os.getenv("FDC_API_KEY") or "DEMO_KEY"
    OPENFOODFACTS_CACHE_HOURS = float(os.getenv("OPENFOODFACTS_CACHE_HOURS", "24"))

    # Below these AI confidence scores the user must confirm the detected foods.
    TEXT_CONFIDENCE_THRESHOLD = int(os.getenv("TEXT_CONFIDENCE_THRESHOLD", "90"))
    IMAGE_CONFIDENCE_THRESHOLD = int(os.getenv("IMAGE_CONFIDENCE_THRESHOLD", "80"))
