from __future__ import annotations

import logging
import shutil
from typing import Any, Dict

from ..context import InstallContext
from ..lib.artifacts import KioskArtifacts, chown_paths, write_kiosk

logger = logging.getLogger(__name__)


class KioskSetupStep:
    step_id = "88_kiosk_setup"
    title = "Kiosk Display Setup"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        app_url = (state.get("execution") or {}).get("decisions", {}).get("app_url") or s.default_app_url

        found = next((b for b in s.browsers if shutil.which(b)), None)
        if found:
            logger.info("Kiosk browser: %s", found)
        else:
            msg = f"No kiosk browser found (tried {', '.join(s.browsers)}); launcher will retry at login"
            logger.warning(msg)
            state.setdefault("execution", {}).setdefault("warnings", []).append(
                {"step": self.step_id, "warning": msg}
            )

        out = write_kiosk(
            kiosk_dir=ctx.paths.kiosk_dir,
            autostart_dir=ctx.autostart_dir,
            app_url=app_url,
            browsers=s.browsers,
            dry_run=ctx.dry_run,
        )
        if not ctx.dry_run:
            self._hand_over(ctx, out)

        state.setdefault("execution", {}).setdefault("decisions", {})["kiosk"] = {
            "browser": found,
            "launcher": str(out.launcher),
            "autostart": [str(p) for p in out.autostart_entries],
        }
        return state

    @staticmethod
    def _hand_over(ctx: InstallContext, out: KioskArtifacts) -> None:
        chown_paths(
            [
                ctx.paths.kiosk_dir,
                out.loading_page,
                out.launcher,
                out.blanking_script,
                ctx.autostart_dir.parent,
                ctx.autostart_dir,
                *out.autostart_entries,
            ],
            ctx.user,
        )
