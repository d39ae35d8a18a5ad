from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence

from .context import InstallContext
from .errors import InstallerError

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single named unit of orchestration."""

    step_id: str
    title: str
    fatal: bool

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    warned_steps: List[str]


def _banner(title: str) -> None:
    logger.info("=" * 31)
    logger.info(">>> %s", title)
    logger.info("=" * 31)


def run_pipeline(
    *,
    ctx: InstallContext,
    state: Dict[str, Any],
    steps: Sequence[Step],
) -> PipelineResult:
    """Run steps strictly in order.

    A fatal step that raises InstallerError stops the run (the error is
    re-raised for the caller to turn into an exit code). A non-fatal step
    that raises is logged and recorded as a warning, and the run continues.
    """

    ran: List[str] = []
    warned: List[str] = []
    exe = state.setdefault("execution", {})

    for step in steps:
        exe["current_step"] = step.step_id
        _banner(step.title)

        try:
            state = step.run(ctx, state)
        except InstallerError as e:
            if step.fatal:
                logger.error("%s failed: %s", step.title, e)
                exe.setdefault("failed_steps", []).append(step.step_id)
                raise
            logger.warning("%s failed (non-fatal): %s", step.title, e)
            exe.setdefault("warnings", []).append({"step": step.step_id, "warning": str(e)})
            warned.append(step.step_id)
        else:
            logger.info("%s completed successfully", step.title)
        ran.append(step.step_id)
        exe.setdefault("ran_steps", []).append(step.step_id)

    exe["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, warned_steps=warned)
