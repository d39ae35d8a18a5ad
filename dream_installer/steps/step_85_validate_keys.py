from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..context import InstallContext
from ..errors import StepError
from ..lib.api_keys import validate_api_keys
from ..lib.credentials import read_env_file

logger = logging.getLogger(__name__)


class ValidateApiKeysStep:
    """Ask each provider whether the stored key works. Never blocks the install."""

    step_id = "85_validate_api_keys"
    title = "API Key Validation"
    fatal = False

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        s = ctx.settings
        if ctx.dry_run:
            logger.info("Dry run: skipping API key validation")
            return state

        try:
            keys = read_env_file(ctx.paths.env_file)
        except (OSError, ValueError) as e:
            raise StepError(f"Could not read {ctx.paths.env_file}: {type(e).__name__}") from e
        results = validate_api_keys(
            keys,
            {"OPENAI_API_KEY": s.openai_probe_url, "LUMALABS_API_KEY": s.luma_probe_url},
            client=self._client,
        )
        state.setdefault("execution", {}).setdefault("decisions", {})["api_keys_valid"] = results

        bad = [name for name, ok in results.items() if not ok]
        if bad:
            raise StepError(f"API key validation failed for: {', '.join(bad)}")
        return state
