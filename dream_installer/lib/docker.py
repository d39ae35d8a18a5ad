from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


def docker_available(*, dry_run: bool = False) -> bool:
    r = run_cmd(["docker", "--version"], check=False, dry_run=dry_run)
    return r.ok


def run_install_script(script: Path, *, dry_run: bool = False) -> None:
    run_cmd(["sh", str(script)], dry_run=dry_run)


def add_user_to_group(user: str, group: str = "docker", *, dry_run: bool = False) -> None:
    run_cmd(["usermod", "-aG", group, user], dry_run=dry_run)
    logger.info("Added %s to %s group", user, group)


def docker_version(*, dry_run: bool = False) -> str:
    r = run_cmd(["docker", "--version"], dry_run=dry_run)
    return r.stdout.strip()


def smoke_test(*, dry_run: bool = False) -> None:
    run_cmd(["docker", "run", "--rm", "hello-world"], dry_run=dry_run)


def build_image(
    app_dir: Path,
    tag: str,
    *,
    memory: str = "1g",
    memory_swap: str = "2g",
    env: Optional[Mapping[str, str]] = None,
    dry_run: bool = False,
) -> None:
    run_cmd(
        ["docker", "build", f"--memory={memory}", f"--memory-swap={memory_swap}", "-t", tag, "."],
        cwd=str(app_dir),
        env={**(env or {}), "DOCKER_BUILDKIT": "1"},
        dry_run=dry_run,
    )


def compose(
    app_dir: Path,
    compose_file: str,
    args: Sequence[str],
    *,
    check: bool = True,
    env: Optional[Mapping[str, str]] = None,
    dry_run: bool = False,
) -> CmdResult:
    return run_cmd(
        ["docker", "compose", "-f", compose_file, *args],
        cwd=str(app_dir),
        env=env,
        check=check,
        dry_run=dry_run,
    )
