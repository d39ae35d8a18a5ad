from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..context import InstallContext
from ..lib import systemd
from ..lib.artifacts import ServiceUnit, docker_compose_unit, gpio_unit, write_unit

logger = logging.getLogger(__name__)


class ServiceRegistrationStep:
    step_id = "70_service_registration"
    title = "Setting up Auto-start Services"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings

        units: List[ServiceUnit] = [
            docker_compose_unit(name=s.docker_unit, app_dir=ctx.app_dir, compose_file=s.compose_file)
        ]
        if (ctx.app_dir / s.gpio_script).is_file():
            units.append(
                gpio_unit(
                    name=s.gpio_unit,
                    app_dir=ctx.app_dir,
                    script=s.gpio_script,
                    user=ctx.user,
                    log_path=s.gpio_log_path,
                    docker_unit=s.docker_unit,
                )
            )
        else:
            msg = f"{s.gpio_script} not found; GPIO service not installed"
            logger.warning(msg)
            state.setdefault("execution", {}).setdefault("warnings", []).append(
                {"step": self.step_id, "warning": msg}
            )

        for unit in units:
            write_unit(unit, ctx.unit_dir, dry_run=ctx.dry_run)

        systemd.daemon_reload(dry_run=ctx.dry_run)
        for unit in units:
            systemd.enable(unit.name, dry_run=ctx.dry_run)

        state.setdefault("execution", {}).setdefault("decisions", {})["units"] = [u.name for u in units]
        logger.info("Created systemd services for auto-start: %s", ", ".join(u.name for u in units))
        return state
