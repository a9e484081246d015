"""
Environment-backed settings.

Values are read on every call so tests can patch the environment. Secrets have
no fallback: `require_settings()` runs at startup and fails fast.
"""

from __future__ import annotations

import os

DEFAULT_PORT = 3000
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

REQUIRED_ENV = (
    "DATABASE_URL",
    "JWT_SECRET",
    "ADMIN_USER",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
)


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def missing_settings() -> list[str]:
    missing = [name for name in REQUIRED_ENV if not env_str(name)]
    if not env_str("ADMIN_PASS") and not env_str("ADMIN_PASSWORD_HASH"):
        missing.append("ADMIN_PASS or ADMIN_PASSWORD_HASH")
    return missing


def require_settings() -> None:
    missing = missing_settings()
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


def host() -> str:
    return env_str("HOST", "0.0.0.0")


def port() -> int:
    return env_int("PORT", DEFAULT_PORT)


def cors_origins() -> list[str]:
    raw = env_str("CORS_ORIGINS", "*")
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


def max_upload_bytes() -> int:
    value = env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES
