from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.app_config import ensure_config, read_app_url
from ..lib.artifacts import chown_paths
from ..lib.credentials import DEFAULT_SECRETS, collect_secrets

logger = logging.getLogger(__name__)


class SecretsStep:
    """Collect API keys into .env (once) and put config.json in place."""

    step_id = "20_secrets"
    title = "API Keys Configuration"
    fatal = True

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        paths = ctx.paths

        created_env = not paths.env_file.exists()
        collect_secrets(
            DEFAULT_SECRETS,
            env_path=paths.env_file,
            template_path=paths.env_template,
            prompt=ctx.prompt,
        )
        created_config = ensure_config(paths.config_file, paths.config_template)

        # Written as root; the app checkout belongs to the device user.
        chown_paths(
            [p for p, created in ((paths.env_file, created_env), (paths.config_file, created_config)) if created],
            ctx.user,
        )

        app_url = read_app_url(paths.config_file, default=ctx.settings.default_app_url)

        decisions = state.setdefault("execution", {}).setdefault("decisions", {})
        decisions["env_file_created"] = created_env
        decisions["config_file_created"] = created_config
        decisions["app_url"] = app_url
        logger.info("Application URL resolved to %s", app_url)
        return state
