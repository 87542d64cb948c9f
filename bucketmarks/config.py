import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "default-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'bucketmarks.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "1") == "1"
    SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "30"))
    SESSION_CLEANUP_INTERVAL_MINUTES = int(
        os.environ.get("SESSION_CLEANUP_INTERVAL_MINUTES", "60")
    )
    CONTENT_FETCH_TIMEOUT = float(os.environ.get("CONTENT_FETCH_TIMEOUT", "10"))
    CONTENT_MAX_BYTES = int(os.environ.get("CONTENT_MAX_BYTES", "2500000"))

    SYNC_SERVER_URL = os.environ.get("SYNC_SERVER_URL", "http://127.0.0.1:8072")
    SYNC_REQUEST_TIMEOUT = float(os.environ.get("SYNC_REQUEST_TIMEOUT", "10"))
    SYNC_PUSH_DEBOUNCE_MS = int(os.environ.get("SYNC_PUSH_DEBOUNCE_MS", "500"))
    SYNC_POLL_INTERVAL_SECONDS = int(os.environ.get("SYNC_POLL_INTERVAL_SECONDS", "60"))
    TOMBSTONE_RETENTION_DAYS = int(os.environ.get("TOMBSTONE_RETENTION_DAYS", "30"))
    TOMBSTONE_SWEEP_INTERVAL_HOURS = int(
        os.environ.get("TOMBSTONE_SWEEP_INTERVAL_HOURS", "24")
    )
    LOCAL_STORE_PATH = os.environ.get(
        "LOCAL_STORE_PATH", str(Path.home() / ".bucketmarks" / "replica.json")
    )


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SCHEDULER_ENABLED = False
