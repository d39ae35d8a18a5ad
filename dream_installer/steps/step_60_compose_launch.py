from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.artifacts import write_compose
from ..lib.docker import compose
from ..lib.retry import settle

logger = logging.getLogger(__name__)


class ComposeLaunchStep:
    step_id = "60_compose_launch"
    title = "Configuring Docker Compose and Starting Services"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        write_compose(
            ctx.paths.compose_path,
            image=s.image_tag,
            port=s.port,
            command=s.app_command,
        )

        compose(ctx.app_dir, s.compose_file, ["config", "--quiet"], env=ctx.env, dry_run=ctx.dry_run)
        logger.info("Docker Compose configuration validation completed successfully")

        compose(ctx.app_dir, s.compose_file, ["up", "-d"], env=ctx.env, dry_run=ctx.dry_run)
        if not ctx.dry_run:
            settle(s.settle_s)
        return state
