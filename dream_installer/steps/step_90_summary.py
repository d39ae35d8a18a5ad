from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext

logger = logging.getLogger(__name__)


class SummaryStep:
    step_id = "90_summary"
    title = "Installation Complete!"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        exe = state.get("execution") or {}
        app_url = (exe.get("decisions") or {}).get("app_url") or s.default_app_url
        compose = f"docker compose -f {s.compose_file}"

        logger.info("Dream Recorder installed successfully!")
        logger.info("Application URL: %s", app_url)
        logger.info("Management URL: %s/dreams", app_url)
        logger.info("To start manually: %s up -d", compose)
        logger.info("To stop: %s down", compose)

        warnings = exe.get("warnings") or []
        if warnings:
            logger.warning("Finished with %s warning(s):", len(warnings))
            for w in warnings:
                logger.warning("  [%s] %s", w.get("step"), w.get("warning"))

        state["summary"] = {"app_url": app_url, "management_url": f"{app_url}/dreams"}
        return state
