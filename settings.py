from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def load_dotenv(path: str = ".env") -> None:
    if not os.path.exists(path):
        return

    try:
        with open(path, "r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip("'").strip('"')
                if key:
                    os.environ.setdefault(key, value)
    except OSError:
        logger.exception("Failed to read %s", path)


def optional_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, expected a number of seconds", name, raw)
        return None


load_dotenv()

PRODUCTS_API_URL = os.environ.get("PRODUCTS_API_URL", "http://localhost:5000/api/products")
# Unset means the transport default (no timeout).
PRODUCTS_API_TIMEOUT_SECONDS = optional_float("PRODUCTS_API_TIMEOUT_SECONDS")
ADMIN_SESSION_PATH = os.environ.get("ADMIN_SESSION_PATH", ".admin_session.json")
PORT = int(os.environ.get("PORT", "5001"))
FLASK_DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"
