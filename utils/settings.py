from pathlib import Path
from typing import Any

import yaml

SECRET_KEYS = ("DATABASE_PASSWORD",)


def mask_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """
    Returns a copy of the configuration that is safe to log.
    Non-empty secret values are replaced with '*****'.
    """
    masked = dict(config)
    for key in SECRET_KEYS:
        if masked.get(key):
            masked[key] = "*****"
    return masked


def get_settings_path(target_dir: str = None) -> Path:
    """Returns the path to the settings.yaml file."""
    if target_dir is None:
        from config import get_config

        target_dir = get_config()["TARGET_DIR"]
    return Path(target_dir) / "settings.yaml"


def load_settings_yaml(target_dir: str = None) -> dict[str, Any]:
    """Loads runtime overrides from YAML; a missing or broken file means no overrides."""
    settings_path = get_settings_path(target_dir)
    if not settings_path.is_file():
        return {}
    try:
        raw = settings_path.read_text(encoding="utf-8").strip()
    except OSError:
        return {}
    if not raw:
        return {}
    try:
        data = yaml.safe_load(raw)
        return data if isinstance(data, dict) else {}
    except yaml.YAMLError:
        return {}
