from __future__ import annotations

import logging
import os
import pwd
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..errors import ArtifactWriteError
from .fs import write_atomic

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


@dataclass(frozen=True)
class ServiceUnit:
    name: str
    description: str
    working_directory: str
    exec_start: str
    exec_stop: Optional[str] = None
    type: str = "simple"
    remain_after_exit: bool = False
    restart: Optional[str] = None
    restart_sec: int = 5
    after: Sequence[str] = ("network.target",)
    requires: Sequence[str] = ()
    wanted_by: str = "multi-user.target"
    user: Optional[str] = None
    log_path: Optional[str] = None


def render_text(template_name: str, variables: Mapping[str, Any]) -> str:
    return _env.get_template(template_name).render(**variables)


def render(
    template_name: str,
    variables: Mapping[str, Any],
    destination: Path,
    *,
    mode: Optional[int] = None,
    dry_run: bool = False,
) -> Path:
    """Render a packaged template to destination. Only write errors can fail."""

    content = render_text(template_name, variables)
    if dry_run:
        logger.info("Would write %s", destination)
        return destination
    path = write_atomic(destination, content, mode=mode)
    logger.info("Created %s", path)
    return path


def write_dockerignore(destination: Path) -> Path:
    return render("dockerignore.j2", {}, destination, mode=0o644)


def compose_manifest(
    *,
    image: str,
    port: int = 5000,
    command: str = "python dream_recorder.py",
    env_file: str = ".env",
) -> Dict[str, Any]:
    port_var = f"${{PORT:-{port}}}"
    return {
        "services": {
            "app": {
                "image": image,
                "ports": [f"{port_var}:{port_var}"],
                "volumes": [
                    "db-data:/app/db",
                    "media-data:/app/media",
                    "logs-data:/app/logs",
                ],
                "env_file": [env_file],
                "environment": ["HOST=0.0.0.0", f"PORT={port_var}"],
                "command": command,
                "deploy": {
                    "resources": {
                        "limits": {"memory": "1G", "cpus": "2.0"},
                        "reservations": {"memory": "512M", "cpus": "1.0"},
                    }
                },
                "restart": "unless-stopped",
                "healthcheck": {
                    "test": ["CMD", "curl", "-f", f"http://localhost:{port_var}/health"],
                    "interval": "30s",
                    "timeout": "10s",
                    "retries": 3,
                },
            }
        },
        "volumes": {"db-data": {}, "media-data": {}, "logs-data": {}},
    }


def write_compose(destination: Path, **kwargs: Any) -> Path:
    body = yaml.safe_dump(compose_manifest(**kwargs), sort_keys=False, default_flow_style=False)
    header = "# Generated by dream-installer; re-running the installer overwrites it.\n"
    path = write_atomic(destination, header + body, mode=0o644)
    logger.info("Created %s", path)
    return path


def write_unit(unit: ServiceUnit, unit_dir: Path, *, dry_run: bool = False) -> Path:
    return render("service.j2", {"unit": unit}, unit_dir / unit.name, mode=0o644, dry_run=dry_run)


def docker_compose_unit(*, name: str, app_dir: Path, compose_file: str, docker_bin: str = "/usr/bin/docker") -> ServiceUnit:
    compose = f"{docker_bin} compose -f {compose_file}"
    return ServiceUnit(
        name=name,
        description="Dream Recorder Docker Compose",
        working_directory=str(app_dir),
        exec_start=f"{compose} up -d",
        exec_stop=f"{compose} down",
        type="oneshot",
        remain_after_exit=True,
        after=("network.target", "docker.service"),
        requires=("docker.service",),
    )


def gpio_unit(
    *, name: str, app_dir: Path, script: str, user: str, log_path: str, docker_unit: str
) -> ServiceUnit:
    """The GPIO listener starts after the compose unit named docker_unit."""

    return ServiceUnit(
        name=name,
        description="Dream Recorder GPIO Service",
        working_directory=str(app_dir),
        exec_start=f"/usr/bin/python3 {app_dir / script}",
        restart="on-failure",
        after=("network.target", docker_unit),
        user=user,
        log_path=log_path,
    )


@dataclass
class KioskArtifacts:
    loading_page: Path
    launcher: Path
    blanking_script: Path
    autostart_entries: List[Path] = field(default_factory=list)


def write_kiosk(
    *,
    kiosk_dir: Path,
    autostart_dir: Path,
    app_url: str,
    browsers: Sequence[str],
    dry_run: bool = False,
) -> KioskArtifacts:
    loading = render("loading.html.j2", {"app_url": app_url}, kiosk_dir / "loading.html", mode=0o644)
    launcher = render(
        "kiosk.sh.j2",
        {"loading_page": str(loading), "browsers": list(browsers)},
        kiosk_dir / "kiosk.sh",
        mode=0o755,
    )
    blanking = render("disable-screen-blanking.sh.j2", {}, kiosk_dir / "disable-screen-blanking.sh", mode=0o755)

    out = KioskArtifacts(loading_page=loading, launcher=launcher, blanking_script=blanking)
    out.autostart_entries.append(
        render(
            "autostart.desktop.j2",
            {"name": "Dream Recorder Kiosk", "comment": "Dream Recorder full-screen display", "exec": str(launcher)},
            autostart_dir / "dream_recorder_kiosk.desktop",
            mode=0o644,
            dry_run=dry_run,
        )
    )
    out.autostart_entries.append(
        render(
            "autostart.desktop.j2",
            {"name": "Disable Screen Blanking", "comment": "Keep the display awake", "exec": str(blanking)},
            autostart_dir / "disable-screen-blanking.desktop",
            mode=0o644,
            dry_run=dry_run,
        )
    )
    return out


def chown_paths(paths: Sequence[Path], user: str) -> None:
    """Hand generated user-facing files back to the target user (we run as root)."""

    try:
        entry = pwd.getpwnam(user)
    except KeyError:
        logger.warning("User %s not found; leaving ownership as-is", user)
        return
    for p in paths:
        try:
            os.chown(p, entry.pw_uid, entry.pw_gid)
        except PermissionError:
            logger.warning("Could not chown %s to %s", p, user)
        except OSError as e:
            raise ArtifactWriteError(str(p), str(e)) from e
