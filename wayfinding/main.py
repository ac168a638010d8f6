"""Application entry point for the wayfinding API.

Run locally:
    uvicorn wayfinding.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import uvicorn

from wayfinding.api import create_app
from wayfinding.config import Settings


def _load_local_env() -> None:
    """Load key=value pairs from a local .env file if present.

    Variables already set in the environment win.
    """
    env_path = Path(".env")
    if not env_path.exists():
        return

    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip().strip("'").strip('"')


_load_local_env()
logging.basicConfig(
    level=Settings.from_env().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
app = create_app()


if __name__ == "__main__":
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    reload_enabled = os.getenv("API_RELOAD", "true").lower() == "true"
    uvicorn.run("wayfinding.main:app", host=host, port=port, reload=reload_enabled)
