from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.pkg import apt_install, apt_update, reset_apt_lists

logger = logging.getLogger(__name__)


class SystemPackagesStep:
    step_id = "30_system_packages"
    title = "System Update"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        # Only refresh lists and add what the installer itself needs; no full upgrade.
        reset_apt_lists(dry_run=ctx.dry_run)
        apt_update(dry_run=ctx.dry_run)
        apt_install(list(ctx.settings.apt_packages), dry_run=ctx.dry_run)
        return state
