import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
repo_root = Path(__file__).resolve().parents[1]
environment = os.getenv("ENVIRONMENT", "development")
env_file = repo_root / f".env.{environment}"
if env_file.exists():
    load_dotenv(env_file, override=True)
else:
    env_path = repo_root / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    return int(value) if value else default


class Config:
    ENVIRONMENT = environment
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or "dev-secret-key-change-in-production"

    # JWT configuration
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=_int_env("JWT_EXPIRES_DAYS", 30))
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_CSRF_IN_COOKIES = False
    JWT_COOKIE_CSRF_PROTECT = False

    # CORS configuration: allow frontend origin(s) via env (comma-separated)
    _cors_env = os.getenv("CORS_ORIGINS", "").strip()
    CORS_ORIGINS = (
        [o.strip() for o in _cors_env.split(",") if o.strip()]
        if _cors_env
        else ["http://localhost:5173", "http://localhost:3000", "http://localhost:19006"]
    )

    # Twilio Verify; leave unset to run with the fallback code only
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_SERVICE_ID = os.getenv("TWILIO_SERVICE_ID")
    VERIFICATION_FALLBACK_CODE = os.getenv("VERIFICATION_FALLBACK_CODE", "000000")
    VERIFICATION_TTL_SECONDS = _int_env("VERIFICATION_TTL_SECONDS", 600)

    # Rate limit for sending verification codes, per client address
    OTP_RATE_LIMIT_CALLS = _int_env("OTP_RATE_LIMIT_CALLS", 5)
    OTP_RATE_LIMIT_WINDOW_SECONDS = _int_env("OTP_RATE_LIMIT_WINDOW_SECONDS", 600)

    # Background notification fan-out
    NOTIFICATION_WORKERS = _int_env("NOTIFICATION_WORKERS", 4)

    # Pagination
    DEFAULT_PAGE_SIZE = _int_env("DEFAULT_PAGE_SIZE", 10)
    MAX_PAGE_SIZE = _int_env("MAX_PAGE_SIZE", 100)
