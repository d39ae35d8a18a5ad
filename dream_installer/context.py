from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .lib.credentials import Prompt, tty_prompt
from .settings import InstallPaths, Settings


@dataclass(frozen=True)
class InstallContext:
    """Everything a step may depend on, passed explicitly instead of via cwd/env."""

    app_dir: Path
    settings: Settings
    user: str
    home: Path
    env: Dict[str, str] = field(default_factory=dict)
    kiosk: bool = False
    validate_keys: bool = True
    dry_run: bool = False
    prompt: Prompt = tty_prompt
    autostart_dir_override: Optional[Path] = None
    unit_dir_override: Optional[Path] = None

    @property
    def paths(self) -> InstallPaths:
        return InstallPaths(app_dir=self.app_dir, compose_file=self.settings.compose_file)

    @property
    def autostart_dir(self) -> Path:
        return self.autostart_dir_override or (self.home / ".config" / "autostart")

    @property
    def unit_dir(self) -> Path:
        return self.unit_dir_override or Path(self.settings.unit_dir)
