from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from ..context import InstallContext
from ..lib.host import HostInfo, probe_host
from ..lib.preflight import validate

logger = logging.getLogger(__name__)


class PreflightStep:
    step_id = "10_preflight"
    title = "Pre-checks and System Validation"
    fatal = True

    def __init__(self, probe: Callable[[], HostInfo] | None = None):
        self._probe = probe

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        host = (self._probe or probe_host)()

        state.setdefault("host", {}).update(
            {
                "model": host.model,
                "is_target_device": host.is_target_device,
                "free_disk_gb": host.free_disk_gb,
                "total_memory_mb": host.total_memory_mb,
            }
        )

        warnings = validate(
            host,
            app_dir=ctx.app_dir,
            min_disk_gb=s.min_disk_gb_preinstall,
            min_memory_mb=s.min_memory_mb,
            required_files=s.required_files,
        )
        for w in warnings:
            state.setdefault("execution", {}).setdefault("warnings", []).append(
                {"step": self.step_id, "warning": w}
            )
        return state
