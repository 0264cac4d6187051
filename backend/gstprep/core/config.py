"""Application configuration loaded from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # Record store URL
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'gst_returns.db'}"
    )

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Header carrying the owning-user id (set by the auth proxy in front of us)
    USER_HEADER: str = os.getenv("USER_HEADER", "X-User-Id")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")

    # CORS
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
    ]

    # Supplier jurisdiction used to classify B2CS rows as intra/inter state
    HOME_STATE_CODE: str = os.getenv("HOME_STATE_CODE", "33")

    # Max allowed abs(CGST - SGST) on a 3.1 row
    CGST_SGST_TOLERANCE: float = float(os.getenv("CGST_SGST_TOLERANCE", "0.1"))


settings = Settings()
