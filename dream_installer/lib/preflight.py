from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import InsufficientDiskSpace, InsufficientMemory, MissingFile
from .host import HostInfo, free_disk_gb

logger = logging.getLogger(__name__)


def check_platform(host: HostInfo) -> Optional[str]:
    """Soft check: returns a warning message instead of raising."""

    if host.is_target_device:
        logger.info("Platform check passed: %s", host.model)
        return None
    msg = "This doesn't appear to be a Raspberry Pi"
    logger.warning("%s (model=%s)", msg, host.model)
    return msg


def check_disk_space(required_gb: int, *, available_gb: Optional[int] = None, path: str = "/") -> int:
    available = free_disk_gb(path) if available_gb is None else int(available_gb)
    if available < required_gb:
        raise InsufficientDiskSpace(required_gb, available)
    logger.info("Disk space check passed: %sGB available (required %sGB)", available, required_gb)
    return available


def check_memory(required_mb: int, *, available_mb: int) -> int:
    if available_mb < required_mb:
        raise InsufficientMemory(required_mb, available_mb)
    logger.info("Memory check passed: %sMB available", available_mb)
    return available_mb


def check_required_files(app_dir: Path, names: Sequence[str]) -> None:
    for name in names:
        if not (app_dir / name).is_file():
            raise MissingFile(name, str(app_dir))
    logger.info("All required files found")


def validate(
    host: HostInfo,
    *,
    app_dir: Path,
    min_disk_gb: int,
    min_memory_mb: int = 4000,
    required_files: Sequence[str] = (),
) -> List[str]:
    """Run every preflight check; hard failures raise, soft ones are returned as warnings."""

    warnings: List[str] = []
    soft = check_platform(host)
    if soft:
        warnings.append(soft)

    check_disk_space(min_disk_gb, available_gb=host.free_disk_gb)
    check_memory(min_memory_mb, available_mb=host.total_memory_mb)
    check_required_files(app_dir, required_files)
    return warnings
