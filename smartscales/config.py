import os
from datetime import timedelta


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///smartscales.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "smartscales_session")
    PERMANENT_SESSION_LIFETIME = timedelta(
        hours=int(os.getenv("SESSION_LIFETIME_HOURS", "24"))
    )

    ENCRYPTION_MASTER_KEY = os.getenv("ENCRYPTION_MASTER_KEY")
    ENCRYPTION_REQUIRED = os.getenv("ENCRYPTION_REQUIRED", "false").lower() == "true"

    TREND_WINDOW_SIZE = int(os.getenv("TREND_WINDOW_SIZE", "5"))
    PROJECTION_MIN_ENTRIES = int(os.getenv("PROJECTION_MIN_ENTRIES", "5"))

    OPEN_FOOD_FACTS_BASE_URL = os.getenv(
        "OPEN_FOOD_FACTS_BASE_URL", "https://world.openfoodfacts.org"
    ).rstrip("/")
    OPEN_FOOD_FACTS_TIMEOUT = float(os.getenv("OPEN_FOOD_FACTS_TIMEOUT", "8.0"))
    OPEN_FOOD_FACTS_USER_AGENT = os.getenv(
        "OPEN_FOOD_FACTS_USER_AGENT", "SmartScales/1.0 (+nutrition-lookup)"
    )
