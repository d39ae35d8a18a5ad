from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = "/var/log/dream-installer.log"
FALLBACK_LOG_NAME = "dream-installer.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log_file(log_path: str) -> Tuple[logging.FileHandler, str]:
    path = Path(log_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path), str(path)
    except OSError:
        fallback = Path.cwd() / FALLBACK_LOG_NAME
        return logging.FileHandler(fallback), str(fallback)


def configure_logging(log_path: str = DEFAULT_LOG_PATH, level: int = logging.INFO, console: bool = True) -> str:
    """Send installer logs to a file (and the console) for the whole run.

    Every step banner, command line and warning ends up in the file so a
    failed provisioning can be diagnosed afterwards. /var/log is only
    writable as root; dry runs as a regular user log to ./dream-installer.log
    instead. Calling this again is a no-op.

    Returns the log file actually in use.
    """

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_dream_installer_configured", False):
        return getattr(root, "_dream_installer_log_path", log_path)

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    file_handler, actual = _open_log_file(log_path)
    targets: list[logging.Handler] = [file_handler]
    if console:
        targets.append(logging.StreamHandler())
    for handler in targets:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root._dream_installer_configured = True  # type: ignore[attr-defined]
    root._dream_installer_log_path = actual  # type: ignore[attr-defined]

    logging.getLogger(__name__).info("Logging to %s (requested %s)", actual, log_path)
    return actual
