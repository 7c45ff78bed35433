import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "Kinnected API"
    ENV: str = os.getenv("ENV", "dev")
    # Exposes unexpected exception messages in 500 responses
    DEBUG: bool = _env_bool("DEBUG", False)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./kinnected.db"
    )

    # Render uses postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT
    # -------------------------------------------------------
    SECRET_KEY: str = os.getenv(
        "SECRET_KEY",
        "supersecretlocalkey123"   # Only used for local dev
    )
    ALGORITHM: str = "HS256"

    # 7 days token expiry by default
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
    )
    COOKIE_NAME: str = os.getenv("COOKIE_NAME", "token")

    # -------------------------------------------------------
    # CORS
    # -------------------------------------------------------
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:8080,http://localhost:5173,http://localhost:8081",
        ).split(",")
        if origin.strip()
    ]

    # -------------------------------------------------------
    # Rate limiting (per client IP, fixed window)
    # -------------------------------------------------------
    RATE_LIMIT_ENABLED: bool = _env_bool("RATE_LIMIT_ENABLED", True)

    API_RATE_LIMIT: int = int(os.getenv("API_RATE_LIMIT", 100))
    API_RATE_WINDOW_SECONDS: int = int(os.getenv("API_RATE_WINDOW_SECONDS", 15 * 60))

    AUTH_RATE_LIMIT: int = int(os.getenv("AUTH_RATE_LIMIT", 20))
    AUTH_RATE_WINDOW_SECONDS: int = int(os.getenv("AUTH_RATE_WINDOW_SECONDS", 15 * 60))

    AI_RATE_LIMIT: int = int(os.getenv("AI_RATE_LIMIT", 50))
    AI_RATE_WINDOW_SECONDS: int = int(os.getenv("AI_RATE_WINDOW_SECONDS", 60 * 60))

    # -------------------------------------------------------
    # Chatbot (any OpenAI-compatible endpoint, Gemini by default)
    # -------------------------------------------------------
    AI_API_KEY: str | None = os.getenv("AI_API_KEY") or os.getenv("GEMINI_API_KEY")
    AI_MODEL: str = os.getenv("AI_MODEL", "gemini-2.0-flash")
    AI_BASE_URL: str = os.getenv(
        "AI_BASE_URL",
        "https://generativelanguage.googleapis.com/v1beta/openai/"
    )
    AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", 30))


# Default instance, used by the module-level app in main.py
settings = Settings()
