from __future__ import annotations

import logging
import os
import pwd
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

TARGET_DEVICE_MARKER = "raspberry pi"


@dataclass(frozen=True)
class HostInfo:
    model: Optional[str]
    is_target_device: bool
    free_disk_gb: int
    total_memory_mb: int


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip("\x00").strip()
        return txt or None
    except OSError:
        return None


def detect_model() -> Optional[str]:
    """Device-tree model string, or the cpuinfo `Model` line on older kernels."""

    model = _read_text(Path("/proc/device-tree/model")) or _read_text(
        Path("/sys/firmware/devicetree/base/model")
    )
    if model:
        return model
    cpuinfo = _read_text(Path("/proc/cpuinfo")) or ""
    for line in cpuinfo.splitlines():
        if line.lower().startswith("model") and ":" in line:
            value = line.split(":", 1)[1].strip()
            if value and not value.isdigit():
                return value
    return None


def is_target_device(model: Optional[str]) -> bool:
    return bool(model) and TARGET_DEVICE_MARKER in model.lower()


def free_disk_gb(path: str = "/") -> int:
    """Free space available to unprivileged users, floored to whole GB."""

    usage = shutil.disk_usage(path)
    return int(usage.free // (1024 ** 3))


def total_memory_mb(meminfo_path: str = "/proc/meminfo") -> int:
    for line in Path(meminfo_path).read_text(encoding="utf-8").splitlines():
        if line.startswith("MemTotal:"):
            return int(line.split()[1]) // 1024
    raise ValueError(f"MemTotal missing from {meminfo_path}")


def probe_host(root: str = "/") -> HostInfo:
    model = detect_model()
    info = HostInfo(
        model=model,
        is_target_device=is_target_device(model),
        free_disk_gb=free_disk_gb(root),
        total_memory_mb=total_memory_mb(),
    )
    logger.info(
        "Host: model=%s disk_free=%sGB mem_total=%sMB",
        info.model,
        info.free_disk_gb,
        info.total_memory_mb,
    )
    return info


def desktop_session_detected(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return bool(env.get("XDG_SESSION_TYPE") or env.get("DISPLAY"))


def resolve_target_user(environ: Optional[Mapping[str, str]] = None) -> Tuple[str, Path]:
    """The human the device is being set up for: SUDO_USER when elevated, else the caller."""

    env = os.environ if environ is None else environ
    name = env.get("SUDO_USER") or env.get("USER")
    try:
        entry = pwd.getpwnam(name) if name else pwd.getpwuid(os.getuid())
    except KeyError:
        logger.warning("Unknown user %s; falling back to the current uid", name)
        entry = pwd.getpwuid(os.getuid())
    return entry.pw_name, Path(entry.pw_dir)
