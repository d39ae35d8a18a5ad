from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.artifacts import write_dockerignore
from ..lib.docker import build_image
from ..lib.preflight import check_disk_space

logger = logging.getLogger(__name__)


class BuildImageStep:
    step_id = "50_build_image"
    title = "Building Docker Image (with resource monitoring)"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        write_dockerignore(ctx.paths.dockerignore)
        check_disk_space(s.min_disk_gb_prebuild)
        build_image(ctx.app_dir, s.image_tag, env=ctx.env, dry_run=ctx.dry_run)
        logger.info("Docker image build completed successfully (%s)", s.image_tag)
        return state
