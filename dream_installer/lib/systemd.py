from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def is_active(service: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(["systemctl", "is-active", "--quiet", service], check=False, dry_run=dry_run)
    return r.ok


def daemon_reload(*, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "daemon-reload"], dry_run=dry_run)


def enable(unit: str, *, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "enable", unit], dry_run=dry_run)


def start(unit: str, *, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "start", unit], dry_run=dry_run)
