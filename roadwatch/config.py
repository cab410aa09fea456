"""
roadwatch/config.py
Config with env overrides. Persists to roadwatch_config.json.

Precedence: DEFAULT_CONFIG < roadwatch_config.json < ROADWATCH_* env vars.
Missing remote-store settings are not fatal: the store then runs
local-only and every create is a degraded success.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "roadwatch_config.json"

DEFAULT_CONFIG = {
    "language": "ru",
    "collection": "hazards",
    "cache_path": "roadwatch_cache.db",
    "cache_key": "hazards",
    "firebase_project_id": "",
    "firebase_api_key": "",
    "remote_timeout_sec": 15,
    "geocoder_url": "https://nominatim.openstreetmap.org/reverse",
    "geocoder_user_agent": "SmartCityAI/1.0",
    "geocoder_timeout_sec": 10,
    "admin_email": "",
}

# env var → config key
ENV_OVERRIDES = {
    "ROADWATCH_FIREBASE_PROJECT_ID": "firebase_project_id",
    "ROADWATCH_FIREBASE_API_KEY": "firebase_api_key",
    "ROADWATCH_ADMIN_EMAIL": "admin_email",
    "ROADWATCH_LANGUAGE": "language",
    "ROADWATCH_CACHE_PATH": "cache_path",
}

REMOTE_KEYS = ("firebase_project_id", "firebase_api_key")


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from roadwatch_config.json + env. Returns defaults if missing."""
    config = dict(DEFAULT_CONFIG)
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                config.update(data)
            else:
                logger.warning(f"Config file {path} is not a JSON object, ignoring.")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")
    _apply_env_overrides(config)
    return config


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to roadwatch_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    for env_name, key in ENV_OVERRIDES.items():
        if v := os.environ.get(env_name):
            config[key] = v


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Human-readable problems, empty when complete.
    Each missing remote setting is logged, the key values themselves never are.
    """
    problems = []
    for key in REMOTE_KEYS:
        if not config.get(key):
            problems.append(f"Missing setting: {key} (remote store disabled, local-only mode)")
    if not config.get("admin_email"):
        problems.append("Missing setting: admin_email (nobody can delete hazards)")
    for p in problems:
        logger.warning(p)
    return problems


def remote_configured(config: Dict[str, Any]) -> bool:
    return bool(config.get("firebase_project_id"))


def is_privileged(email: Optional[str], admin_email: Optional[str]) -> bool:
    """Case-insensitive identity match against the designated admin."""
    if not email or not admin_email:
        return False
    return email.strip().lower() == admin_email.strip().lower()
