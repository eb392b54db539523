import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from typing import List

load_dotenv()

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]

class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "identity"
    APP_DISPLAY_NAME: str = os.getenv("APP_DISPLAY_NAME", "Smart Buffet")

    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    STATE_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("STATE_TOKEN_EXPIRE_MINUTES", "5"))

    # "deferred" leaves taxId/phone empty for later completion, "eager" synthesizes them
    OAUTH_COMPLETION_STRATEGY: str = os.getenv("OAUTH_COMPLETION_STRATEGY", "deferred")
    UNIQUE_VALUE_MAX_ATTEMPTS: int = int(os.getenv("UNIQUE_VALUE_MAX_ATTEMPTS", "10"))

    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_REDIRECT_URI: str = os.getenv("GOOGLE_REDIRECT_URI", "")

    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_TIMEOUT: float = float(os.getenv("SMTP_TIMEOUT", "10"))
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "")

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./identity.db")

    class Config:
        case_sensitive = True


def get_cors_origins() -> List[str]:
    """
    Get the CORS origins from environment or use defaults
    """
    cors_origins_env = os.getenv("CORS_ORIGINS", "")
    if cors_origins_env:
        # Handle comma-separated list from environment variable
        origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
        if origins:
            return origins

    return DEFAULT_CORS_ORIGINS

settings = Settings()
