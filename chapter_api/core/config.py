import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV.lower() == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./chapter.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:4200"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

RESET_CODE_TTL_SECONDS = int(os.getenv("RESET_CODE_TTL_SECONDS", "300"))
RESET_EMAIL_SUBJECT = os.getenv("RESET_EMAIL_SUBJECT", "Password Reset OTP - Student Chapter")

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USER)
SMTP_USE_TLS = _get_bool(os.getenv("SMTP_USE_TLS"), default=True)

# Caller-supplied role=admin is a privilege escalation unless explicitly allowed.
ALLOW_ADMIN_REGISTRATION = _get_bool(os.getenv("ALLOW_ADMIN_REGISTRATION"), default=False)

EXPOSE_ERROR_DETAILS = _get_bool(os.getenv("EXPOSE_ERROR_DETAILS"), default=not IS_PRODUCTION)


def validate_runtime_config() -> None:
    if IS_PRODUCTION and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if IS_PRODUCTION and EXPOSE_ERROR_DETAILS:
        raise RuntimeError("EXPOSE_ERROR_DETAILS must be disabled in production.")
