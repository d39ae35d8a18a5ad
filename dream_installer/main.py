from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from .context import InstallContext
from .errors import InstallerError
from .lib.host import desktop_session_detected, resolve_target_user
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Step, run_pipeline
from .run_record import DEFAULT_RECORD_PATH, new_record, save_record
from .settings import load_settings
from .steps import (
    BuildImageStep,
    ComposeLaunchStep,
    ContainerEngineStep,
    KioskSetupStep,
    PreflightStep,
    SecretsStep,
    ServiceRegistrationStep,
    SummaryStep,
    SystemPackagesStep,
    ValidateApiKeysStep,
    VerificationStep,
)

logger = logging.getLogger(__name__)


def build_steps(
    *,
    validate_keys: bool = True,
    kiosk: bool = False,
    http_client: Optional[httpx.Client] = None,
) -> List[Step]:
    """The orchestration table. Key validation and kiosk setup are optional trailing stages."""

    steps: List[Step] = [
        PreflightStep(),
        SecretsStep(),
        SystemPackagesStep(),
        ContainerEngineStep(),
        BuildImageStep(),
        ComposeLaunchStep(),
        ServiceRegistrationStep(),
        VerificationStep(client=http_client),
    ]
    if validate_keys:
        steps.append(ValidateApiKeysStep(client=http_client))
    if kiosk:
        steps.append(KioskSetupStep())
    steps.append(SummaryStep())
    return steps


def run(
    ctx: InstallContext,
    *,
    log_path: str = DEFAULT_LOG_PATH,
    record_path: str = DEFAULT_RECORD_PATH,
    steps: Optional[List[Step]] = None,
) -> Dict[str, Any]:
    """Run the installer pipeline and persist a run record (success or failure)."""

    actual_log_path = configure_logging(log_path=log_path)

    state = new_record()
    exe = state["execution"]
    exe["paths"] = {
        "app_dir": str(ctx.app_dir),
        "log_path_requested": log_path,
        "log_path_actual": actual_log_path,
    }
    exe["options"] = {
        "user": ctx.user,
        "kiosk": ctx.kiosk,
        "validate_keys": ctx.validate_keys,
        "dry_run": ctx.dry_run,
    }

    if steps is None:
        steps = build_steps(validate_keys=ctx.validate_keys, kiosk=ctx.kiosk)

    logger.info("Dream Recorder SAFE Pi Installer (app_dir=%s)", ctx.app_dir)

    try:
        result = run_pipeline(ctx=ctx, state=state, steps=steps)
        state = result.state
        state["execution"]["status"] = "succeeded"
        return state
    except Exception as e:
        state["execution"]["status"] = "failed"
        state["execution"]["errors"].append(
            {
                "step": state["execution"].get("current_step"),
                "type": type(e).__name__,
                "error": str(e),
            }
        )
        raise
    finally:
        save_record(record_path, state)


def _parse_args(argv: Optional[list[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="dream-installer", description="Provision a Dream Recorder device.")
    p.add_argument("--app-dir", default=None, help="Dream Recorder checkout (default: current directory)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--record", default=DEFAULT_RECORD_PATH, help="Where to write the run record (json|yaml)")
    p.add_argument("--settings", default=None, help="YAML file overriding installer settings")
    p.add_argument(
        "--kiosk",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Install kiosk display autostart (default: only when a desktop session is detected)",
    )
    p.add_argument(
        "--validate-keys",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Probe the provider APIs with the stored keys at the end (warnings only)",
    )
    p.add_argument("--dry-run", action="store_true", help="Log external commands without running them")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(log_path=args.log)

    if os.geteuid() != 0 and not args.dry_run:
        logger.error("dream-installer must be run as root (try: sudo dream-installer)")
        return 1

    user, home = resolve_target_user()
    kiosk = desktop_session_detected() if args.kiosk is None else bool(args.kiosk)

    try:
        settings = load_settings(args.settings)
        ctx = InstallContext(
            app_dir=Path(args.app_dir or os.getcwd()).resolve(),
            settings=settings,
            user=user,
            home=home,
            env={"PORT": str(settings.port)},
            kiosk=kiosk,
            validate_keys=bool(args.validate_keys),
            dry_run=bool(args.dry_run),
        )
        run(ctx, log_path=args.log, record_path=args.record)
    except InstallerError:
        # Already logged by the pipeline with the failing step's name.
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except Exception:
        logger.exception("Installer failed")
        return 1
    return 0
