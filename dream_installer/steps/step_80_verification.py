from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..context import InstallContext
from ..lib.verify import verify

logger = logging.getLogger(__name__)


class VerificationStep:
    step_id = "80_verification"
    title = "Final System Validation"
    fatal = True

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        decisions = state.setdefault("execution", {}).setdefault("decisions", {})
        app_url = decisions.get("app_url") or s.default_app_url

        report = verify(
            app_url,
            app_dir=ctx.app_dir,
            compose_file=s.compose_file,
            min_disk_gb=s.min_disk_gb_postinstall,
            client=self._client,
            dry_run=ctx.dry_run,
        )
        state["verification"] = report.to_dict()
        if not report.healthy:
            state["execution"].setdefault("warnings", []).append(
                {"step": self.step_id, "warning": f"health check failed for {app_url}"}
            )
        return state
