from __future__ import annotations

import logging
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

APT_LISTS_DIR = "/var/lib/apt/lists"


def reset_apt_lists(*, lists_dir: str = APT_LISTS_DIR, dry_run: bool = False) -> None:
    """Drop cached package lists (a half-written list breaks `apt-get update` on SD cards)."""

    run_cmd(["find", lists_dir, "-mindepth", "1", "-delete"], check=False, dry_run=dry_run)
    run_cmd(["mkdir", "-p", f"{lists_dir}/partial"], dry_run=dry_run)


def apt_update(*, dry_run: bool = False) -> None:
    run_cmd(["apt-get", "update"], env={"DEBIAN_FRONTEND": "noninteractive"}, dry_run=dry_run)


def apt_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    run_cmd(["apt-get", "install", "-y", *packages], env={"DEBIAN_FRONTEND": "noninteractive"}, dry_run=dry_run)
    logger.info("Installed packages: %s", " ".join(packages))
