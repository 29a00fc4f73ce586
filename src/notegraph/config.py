"""
Configuration for the notegraph knowledge base
"""

import os
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    # Paths - absolute, based on file location, not cwd
    _config_file = Path(__file__).resolve()
    BASE_DIR = _config_file.parent.parent.parent  # src/notegraph/config.py -> project root
    DATA_DIR = BASE_DIR / "data"

    # Record store: one "<id>.note" file per note
    NOTES_DIR = Path(os.getenv("NOTEGRAPH_NOTES_DIR", str(DATA_DIR / "notes")))
    ASSETS_DIR = Path(os.getenv("NOTEGRAPH_ASSETS_DIR", str(DATA_DIR / "assets")))
    OUTPUT_DIR = Path(os.getenv("NOTEGRAPH_OUTPUT_DIR", str(DATA_DIR / "site")))
    RECORD_SUFFIX = ".note"
    LOCK_FILE_NAME = ".notegraph.lock"

    # Rendering
    BASE_URL = os.getenv("NOTEGRAPH_BASE_URL", "").rstrip("/")
    # Cosmetic only: a fresh seed per process unless pinned
    HUE_SEED = os.getenv("NOTEGRAPH_HUE_SEED") or secrets.token_hex(8)

    # Index building
    ALLOW_DUPLICATE_ALIASES = _flag("NOTEGRAPH_ALLOW_DUPLICATE_ALIASES", "false")

    # Logging
    LOG_LEVEL = os.getenv("NOTEGRAPH_LOG_LEVEL", "INFO").upper()
    LOG_DIR = DATA_DIR / "logs"
    LOG_PATH = LOG_DIR / "notegraph.log"
    EVENT_LOG_ENABLED = _flag("NOTEGRAPH_EVENT_LOG", "true")
    EVENT_LOG_PATH = DATA_DIR / "events.jsonl"

settings = Config()
