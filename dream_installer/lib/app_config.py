from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

APP_URL_KEY = "GPIO_FLASK_URL"
DEFAULT_APP_URL = "http://localhost:5000"


def ensure_config(config_path: Path, template_path: Path) -> bool:
    """Copy the example config into place unless a config already exists."""

    if config_path.exists():
        logger.info("%s already exists, leaving it untouched", config_path.name)
        return False
    shutil.copyfile(template_path, config_path)
    logger.info("Config file creation completed successfully (%s)", config_path)
    return True


def read_app_url(config_path: Path, default: str = DEFAULT_APP_URL) -> str:
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("%s missing; using %s", config_path, default)
        return default
    except (OSError, ValueError) as e:
        logger.warning("Could not read %s (%s); using %s", config_path, e, default)
        return default

    url = data.get(APP_URL_KEY) if isinstance(data, dict) else None
    if not url or not isinstance(url, str):
        return default
    return url.rstrip("/")
