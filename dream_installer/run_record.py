from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_RECORD_PATH = "/var/lib/dream-installer/last-run.json"


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def new_record() -> Dict[str, Any]:
    return {
        "execution": {
            "current_step": None,
            "ran_steps": [],
            "failed_steps": [],
            "warnings": [],
            "errors": [],
            "decisions": {},
        }
    }


def save_record(path: str, record: Dict[str, Any]) -> str:
    """Persist the run record. A failure here never masks the run's own outcome."""

    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        if _detect_format(p) == "yaml":
            p.write_text(yaml.safe_dump(record, sort_keys=False) + "\n", encoding="utf-8")
        else:
            p.write_text(json.dumps(record, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
    except OSError as e:
        logger.warning("Could not write run record %s: %s", p, e)
    return str(p)
