from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ContainersNotRunning, FilesystemErrorsDetected
from .command import run_cmd
from .docker import compose
from .preflight import check_disk_space

logger = logging.getLogger(__name__)

FS_ERROR_MARKERS = ("EXT4-fs error",)


@dataclass
class VerificationReport:
    app_url: str
    healthy: bool = False
    containers_up: bool = False
    fs_errors: List[str] = field(default_factory=list)
    disk_free_gb: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def health_url(app_url: str) -> str:
    return app_url.rstrip("/") + "/health"


def probe_health(app_url: str, *, client: Optional[httpx.Client] = None, timeout_s: float = 10.0) -> bool:
    """Soft check: True iff GET <app_url>/health answers 2xx."""

    url = health_url(app_url)
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout_s)
    try:
        r = client.get(url)
    except httpx.HTTPError as e:
        logger.warning("Application health check failed (%s), but continuing...", e)
        return False
    finally:
        if owns_client:
            client.close()

    if r.is_success:
        logger.info("Application is responding correctly")
        return True
    logger.warning("Application health check returned HTTP %s, but continuing...", r.status_code)
    return False


def check_containers(app_dir: Path, compose_file: str, *, dry_run: bool = False) -> None:
    r = compose(app_dir, compose_file, ["ps"], check=False, dry_run=dry_run)
    if dry_run or (r.ok and "Up" in r.stdout):
        logger.info("Docker containers are running")
        return

    logs = compose(app_dir, compose_file, ["logs", "--no-color"], check=False)
    logger.error("Docker containers failed to start. Compose logs:\n%s", logs.stdout or logs.stderr)
    raise ContainersNotRunning("Docker containers failed to start", returncode=r.returncode)


def _line_date(line: str) -> Optional[dt.date]:
    stamp = line.split(" ", 1)[0]
    try:
        return dt.date.fromisoformat(stamp[:10])
    except ValueError:
        return None


def find_filesystem_errors(dmesg_output: str, *, today: dt.date) -> List[str]:
    hits: List[str] = []
    for line in dmesg_output.splitlines():
        if not any(m in line for m in FS_ERROR_MARKERS):
            continue
        if _line_date(line) == today:
            hits.append(line.strip())
    return hits


def scan_filesystem_errors(*, today: Optional[dt.date] = None, dry_run: bool = False) -> List[str]:
    """Hard check: abort when the kernel logged filesystem errors today."""

    r = run_cmd(["dmesg", "--time-format", "iso"], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("Could not read kernel log (dmesg exit %s); skipping filesystem check", r.returncode)
        return []

    hits = find_filesystem_errors(r.stdout, today=today or dt.date.today())
    if hits:
        for h in hits:
            logger.error("%s", h)
        raise FilesystemErrorsDetected("New file system errors detected during installation!")
    logger.info("No new file system errors detected")
    return hits


def verify(
    app_url: str,
    *,
    app_dir: Path,
    compose_file: str,
    min_disk_gb: int,
    client: Optional[httpx.Client] = None,
    today: Optional[dt.date] = None,
    dry_run: bool = False,
) -> VerificationReport:
    report = VerificationReport(app_url=app_url)
    report.healthy = False if dry_run else probe_health(app_url, client=client)

    check_containers(app_dir, compose_file, dry_run=dry_run)
    report.containers_up = True

    report.disk_free_gb = check_disk_space(min_disk_gb)
    report.fs_errors = scan_filesystem_errors(today=today, dry_run=dry_run)
    return report
