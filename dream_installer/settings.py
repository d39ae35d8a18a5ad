from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Settings:
    """Installer knobs. Defaults reproduce the stock Dream Recorder deployment."""

    image_tag: str = "dream_recorder:latest"
    compose_file: str = "docker-compose.safe.yml"
    app_command: str = "python dream_recorder.py"
    port: int = 5000

    min_disk_gb_preinstall: int = 10
    min_disk_gb_prebuild: int = 5
    min_disk_gb_postinstall: int = 3
    min_memory_mb: int = 4000
    required_files: Tuple[str, ...] = (
        ".env.example",
        "config.example.json",
        "Dockerfile",
        "requirements.txt",
    )

    apt_packages: Tuple[str, ...] = ("ca-certificates", "curl", "jq")
    docker_install_url: str = "https://get.docker.com"
    docker_install_script: str = "/tmp/get-docker.sh"
    service_wait_s: int = 30
    settle_s: int = 10

    docker_unit: str = "dream_recorder_docker.service"
    gpio_unit: str = "dream_recorder_gpio.service"
    gpio_script: str = "gpio_service.py"
    gpio_log_path: str = "/var/log/dream_recorder_gpio.log"
    unit_dir: str = "/etc/systemd/system"

    browsers: Tuple[str, ...] = ("chromium-browser", "chromium", "firefox-esr", "firefox")

    openai_probe_url: str = "https://api.openai.com/v1/models"
    luma_probe_url: str = "https://api.lumalabs.ai/dream-machine/v1/generations?limit=1"

    default_app_url: str = "http://localhost:5000"

    extra: Dict[str, Any] = field(default_factory=dict)


def _coerce(current: Any, value: Any) -> Any:
    if isinstance(current, tuple):
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"expected a list, got {type(value).__name__}")
        return tuple(str(v) for v in value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, str):
        return str(value)
    return value


def settings_from_mapping(raw: Mapping[str, Any], *, base: Optional[Settings] = None) -> Settings:
    """Overlay a mapping onto Settings; unknown keys are kept in `extra`."""

    base = base or Settings()
    known = {f.name for f in fields(Settings)} - {"extra"}
    updates: Dict[str, Any] = {}
    extra: Dict[str, Any] = dict(base.extra)
    for key, value in raw.items():
        if key in known:
            try:
                updates[key] = _coerce(getattr(base, key), value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"settings: invalid value for {key}: {e}") from e
        else:
            extra[key] = value
    return replace(base, extra=extra, **updates)


def load_settings(path: Optional[str] = None, *, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings: defaults, then an optional YAML file, then PORT from the environment."""

    settings = Settings()

    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ValueError("settings file must be YAML")

        import yaml

        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a mapping/object")
        settings = settings_from_mapping(raw, base=settings)

    env = os.environ if environ is None else environ
    port = (env.get("PORT") or "").strip()
    if port:
        if not port.isdigit():
            raise ValueError(f"PORT must be numeric, got {port!r}")
        settings = replace(settings, port=int(port))

    return settings


@dataclass(frozen=True)
class InstallPaths:
    app_dir: Path
    compose_file: str = "docker-compose.safe.yml"

    @property
    def env_file(self) -> Path:
        return self.app_dir / ".env"

    @property
    def env_template(self) -> Path:
        return self.app_dir / ".env.example"

    @property
    def config_file(self) -> Path:
        return self.app_dir / "config.json"

    @property
    def config_template(self) -> Path:
        return self.app_dir / "config.example.json"

    @property
    def dockerignore(self) -> Path:
        return self.app_dir / ".dockerignore"

    @property
    def compose_path(self) -> Path:
        return self.app_dir / self.compose_file

    @property
    def kiosk_dir(self) -> Path:
        return self.app_dir / "kiosk"
