"""
Runtime settings read from the environment.

Values are read once at import, after loading a .env file if present.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")


# Capacity given to a category whose bracket_capacity was never set
DEFAULT_BRACKET_CAPACITY = _int_env("DEFAULT_BRACKET_CAPACITY", 4)

# How many times the preview path re-reads and retries a repair that lost a race
BRACKET_REPAIR_MAX_ATTEMPTS = _int_env("BRACKET_REPAIR_MAX_ATTEMPTS", 3)

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())
