import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SESSION_COOKIE_NAME = "splitease_session"

    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///splitease.sqlite")

    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # settled splits still count as owed unless switched off
    INCLUDE_SETTLED = _env_bool("SPLITEASE_INCLUDE_SETTLED", True)


config = Config()
