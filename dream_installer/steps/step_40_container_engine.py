from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..context import InstallContext
from ..lib import docker, systemd
from ..lib.retry import RetryPolicy, download_with_retry, wait_for_service

logger = logging.getLogger(__name__)


class ContainerEngineStep:
    step_id = "40_container_engine"
    title = "Docker Installation"
    fatal = True

    def __init__(self, policy: RetryPolicy = RetryPolicy()):
        self.policy = policy

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        decisions = state.setdefault("execution", {}).setdefault("decisions", {})

        if docker.docker_available(dry_run=ctx.dry_run):
            logger.info("Docker is already installed and working")
            decisions["docker_installed_now"] = False
        else:
            logger.info("Installing Docker using official convenience script")
            script = Path(s.docker_install_script)
            download_with_retry(s.docker_install_url, script, self.policy)
            try:
                docker.run_install_script(script, dry_run=ctx.dry_run)
            finally:
                script.unlink(missing_ok=True)
            decisions["docker_installed_now"] = True

        docker.add_user_to_group(ctx.user, dry_run=ctx.dry_run)

        systemd.enable("docker", dry_run=ctx.dry_run)
        systemd.start("docker", dry_run=ctx.dry_run)
        wait_for_service(
            "docker",
            s.service_wait_s,
            is_active=lambda name: systemd.is_active(name, dry_run=ctx.dry_run),
        )

        decisions["docker_version"] = docker.docker_version(dry_run=ctx.dry_run)
        docker.smoke_test(dry_run=ctx.dry_run)
        logger.info("Docker functionality test completed successfully")
        return state
