# tasks/ai_engine/conf.py

from typing import Any

from django.conf import settings

DEFAULTS = {
    "EXTERNAL_RANKING_ENABLED": True,
    "EXTERNAL_RANKER_API_KEY": None,
    "EXTERNAL_RANKER_BASE_URL": "https://openrouter.ai/api/v1",
    "EXTERNAL_RANKER_MODEL": "mistralai/mistral-7b-instruct:free",
    "EXTERNAL_RANKER_TIMEOUT": 10.0,
    "RANKING_CACHE_TTL": 3600,
    "RANKING_CACHE_VERSION": "v1",
    "PATTERN_STORE": "database",
    "PATTERN_STORE_MAX_USERS": 1000,
    "PATTERN_TTL_DAYS": 90,
}


def engine_setting(name: str) -> Any:
    """Read a key from settings.TASKTUNER, falling back to the built-in default."""
    overrides = getattr(settings, "TASKTUNER", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
