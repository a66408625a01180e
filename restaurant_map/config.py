from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "restaurant-map-secret-change-in-production")
    default_query_limit: int = int(os.getenv("DEFAULT_QUERY_LIMIT", "100"))
    max_query_limit: int = int(os.getenv("MAX_QUERY_LIMIT", "1000"))
    default_nearest_results: int = int(os.getenv("DEFAULT_NEAREST_RESULTS", "10"))
    advanced_filters_feature: str = os.getenv("ADVANCED_FILTERS_FEATURE", "advanced-filters")
    billing_backend: str = os.getenv("BILLING_BACKEND", "local")
    autumn_secret_key: str = os.getenv("AUTUMN_SECRET_KEY", "")
    autumn_base_url: str = os.getenv("AUTUMN_BASE_URL", "https://api.useautumn.com/v1")
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "10.0"))
    seed_on_startup: bool = _env_bool("SEED_ON_STARTUP", True)
    data_dir: Path = Path(__file__).resolve().parent / "data"


DEFAULT_APP_CONFIG = AppConfig()
