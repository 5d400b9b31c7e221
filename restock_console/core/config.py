"""Runtime configuration for the restock console.

Priority for every field:
1. Environment variable (``RESTOCK_<FIELD>``, e.g. RESTOCK_API_BASE_URL)
2. restock_console/config.json -> {"api_base_url": "...", ...}
3. Defaults declared on :class:`Settings`
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# config.json lives one level above this file (inside restock_console)
CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

ENV_PREFIX = "RESTOCK_"

DEFAULT_DASHBOARD_URL = (
    "https://us-east-1.online.tableau.com/t/wenxinzhang2025-e6af3a9f9e/views/"
    "GoogleBigQueryLiveInventoryDashboard/InventoryRestockingDashboard"
)


class Settings(BaseModel):
    """Client settings; timings are in seconds."""

    api_base_url: str = Field(default="http://127.0.0.1:8000")
    request_timeout: float = Field(default=10.0, gt=0)

    dashboard_url: str = Field(default=DEFAULT_DASHBOARD_URL)
    dashboard_width: str = Field(default="100%")
    dashboard_height: int = Field(default=800, gt=0)
    dashboard_toolbar: str = Field(default="bottom")

    history_poll_interval: float = Field(default=60.0, gt=0)
    success_notice_seconds: float = Field(default=3.0, ge=0)
    min_busy_seconds: float = Field(default=2.0, ge=0)
    source_reset_delay: float = Field(default=0.1, ge=0)
    reset_settle_seconds: float = Field(default=5.0, ge=0)

    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")

    model_config = {
        "extra": "ignore",
    }

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-None overrides applied."""

        values = {k: v for k, v in overrides.items() if v is not None}
        if "api_base_url" in values:
            values["api_base_url"] = str(values["api_base_url"]).rstrip("/")
        return self.model_copy(update=values)


def _load_config_file(path: Path = CONFIG_PATH) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        # If config is broken, just fall back to env + defaults
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(config_path: Path = CONFIG_PATH) -> Settings:
    """Build a Settings instance from env vars, config.json and defaults."""

    values: Dict[str, Any] = {}
    file_values = _load_config_file(config_path)
    for name in Settings.model_fields:
        env_value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if env_value:
            values[name] = env_value
        elif file_values.get(name) not in (None, ""):
            values[name] = file_values[name]

    settings = Settings(**values)
    return settings.with_overrides(api_base_url=settings.api_base_url)


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return load_settings()
