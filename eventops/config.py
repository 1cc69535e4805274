# eventops/config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Variables from .env (if present) without overriding the real environment
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent


@dataclass
class Settings:
    database_url: str = "sqlite:///./eventops.db"
    secret_key: str = "change-this-key-in-production"
    admin_password: str = ""
    storage_backend: str = "local"     # local | remote
    storage_dir: str = "storage"
    blob_api_url: str = ""
    blob_token: str = ""
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("EVENTOPS_DATABASE_URL", Settings.database_url),
        secret_key=os.getenv("EVENTOPS_SECRET_KEY", Settings.secret_key),
        admin_password=os.getenv("EVENTOPS_ADMIN_PASSWORD", ""),
        storage_backend=os.getenv("EVENTOPS_STORAGE_BACKEND", "local").strip().lower(),
        storage_dir=os.getenv("EVENTOPS_STORAGE_DIR", Settings.storage_dir),
        blob_api_url=os.getenv("EVENTOPS_BLOB_API_URL", ""),
        blob_token=os.getenv("EVENTOPS_BLOB_TOKEN", ""),
        log_level=os.getenv("EVENTOPS_LOG_LEVEL", "INFO").upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
