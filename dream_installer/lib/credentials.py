from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Sequence

from ..errors import InvalidSecretFormat
from .fs import write_atomic

logger = logging.getLogger(__name__)

SECRET_PATTERN = re.compile(r"[A-Za-z0-9_-]{20,}")

Prompt = Callable[[str], str]


@dataclass(frozen=True)
class SecretSpec:
    key: str
    placeholder: str
    prompt: str = ""
    pattern: re.Pattern = SECRET_PATTERN

    @property
    def prompt_text(self) -> str:
        return self.prompt or f"Enter your {self.key}: "


DEFAULT_SECRETS: tuple[SecretSpec, ...] = (
    SecretSpec(key="OPENAI_API_KEY", placeholder="your-openai-api-key-here"),
    SecretSpec(key="LUMALABS_API_KEY", placeholder="your-luma-labs-api-key-here"),
)


def is_valid_secret(value: str, pattern: re.Pattern = SECRET_PATTERN) -> bool:
    return pattern.fullmatch(value) is not None


def tty_prompt(text: str) -> str:
    """Read one line from the controlling terminal (stdin if there is none).

    The installer is usually launched through `curl ... | sudo bash` style
    wrappers where stdin is not the keyboard, so /dev/tty is tried first.
    """

    try:
        with open("/dev/tty", "r+", encoding="utf-8") as tty:
            tty.write(text)
            tty.flush()
            line = tty.readline()
    except OSError:
        sys.stdout.write(text)
        sys.stdout.flush()
        line = sys.stdin.readline()
    return line.rstrip("\r\n")


def render_env(template: str, values: Dict[str, str], specs: Sequence[SecretSpec]) -> str:
    """Substitute each secret for its `KEY=placeholder` text; append `KEY=value` if that text is absent.

    Only the placeholder is replaced, so trailing comments on the line survive.
    """

    out = template
    for spec in specs:
        value = values[spec.key]
        assignment = re.compile(rf"(?<![A-Za-z0-9_]){re.escape(spec.key)}={re.escape(spec.placeholder)}")
        out, n = assignment.subn(lambda _m: f"{spec.key}={value}", out)
        if n == 0:
            logger.warning("%s placeholder not found in env template; appending", spec.key)
            if out and not out.endswith("\n"):
                out += "\n"
            out += f"{spec.key}={value}\n"
    return out


def collect_secrets(
    specs: Sequence[SecretSpec] = DEFAULT_SECRETS,
    *,
    env_path: Path,
    template_path: Path,
    prompt: Prompt = tty_prompt,
) -> Path:
    """Prompt for, validate and persist secrets into the env file.

    An existing env file is returned as-is: nothing is prompted or written.
    Any invalid secret raises InvalidSecretFormat before a byte is written.
    """

    if env_path.exists():
        logger.info("%s already exists, skipping API key setup", env_path.name)
        return env_path

    values: Dict[str, str] = {}
    for spec in specs:
        value = prompt(spec.prompt_text)
        if not is_valid_secret(value, spec.pattern):
            raise InvalidSecretFormat(spec.key)
        values[spec.key] = value

    template = template_path.read_text(encoding="utf-8")
    write_atomic(env_path, render_env(template, values, specs), mode=0o600)
    logger.info("API keys configuration completed successfully (%s)", env_path)
    return env_path


def read_env_file(path: Path) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        out[key.strip()] = value.strip().strip('"').strip("'")
    return out
