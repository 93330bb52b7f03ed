import json
import os
from dotenv import load_dotenv
load_dotenv()


def _json_env(name, default):
    raw = os.getenv(name)
    if not raw:
        return default
    return json.loads(raw)


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///reviewhub.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SUPERADMIN_ROLE = os.getenv("SUPERADMIN_ROLE", "superadmin")
    # used when a publish request carries no visibility block at all
    PUBLISH_DEFAULT_VISIBILITY = _json_env(
        "PUBLISH_DEFAULT_VISIBILITY",
        {"decision": True, "score": False, "comments": False, "customMessage": None},
    )


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
