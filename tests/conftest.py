import json
import logging
import os
import pwd
import subprocess

import pytest

from dream_installer.context import InstallContext
from dream_installer.lib import command, host, preflight
from dream_installer.settings import Settings
from dream_installer.steps import step_10_preflight


ENV_EXAMPLE = """# Dream Recorder secrets
OPENAI_API_KEY=your-openai-api-key-here
LUMALABS_API_KEY=your-luma-labs-api-key-here
LOG_LEVEL=INFO
"""

OPENAI_KEY = "sk-proj_abcdefghijklmnopqrstuvwxyz0123"
LUMA_KEY = "luma-0123456789abcdefghijKLMN"


class FakeShell:
    """Stands in for subprocess.run at the lib.command seam.

    Rules map an argv prefix to (returncode, stdout); the first matching rule
    wins and anything unmatched succeeds with empty output.
    """

    def __init__(self):
        self.calls = []
        self.rules = []

    def on(self, *prefix, returncode=0, stdout="", stderr=""):
        self.rules.insert(0, (tuple(prefix), returncode, stdout, stderr))
        return self

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append({"argv": argv, "cwd": kwargs.get("cwd"), "env": kwargs.get("env")})
        for prefix, rc, out, err in self.rules:
            if tuple(argv[: len(prefix)]) == prefix:
                return subprocess.CompletedProcess(argv, rc, stdout=out, stderr=err)
        return subprocess.CompletedProcess(argv, 0, stdout="", stderr="")

    def argvs(self):
        return [c["argv"] for c in self.calls]

    def ran(self, *prefix):
        return any(tuple(a[: len(prefix)]) == prefix for a in self.argvs())


@pytest.fixture
def shell(monkeypatch):
    fake = FakeShell()
    monkeypatch.setattr(command.subprocess, "run", fake)
    return fake


@pytest.fixture
def fake_host(monkeypatch):
    """Pin host facts: free disk (GB), total memory (MB) and device model."""

    def _apply(free_gb=12, memory_mb=6000, model="Raspberry Pi 4 Model B Rev 1.4"):
        info = host.HostInfo(
            model=model,
            is_target_device=host.is_target_device(model),
            free_disk_gb=free_gb,
            total_memory_mb=memory_mb,
        )
        monkeypatch.setattr(step_10_preflight, "probe_host", lambda: info)
        monkeypatch.setattr(preflight, "free_disk_gb", lambda path="/": free_gb)
        return info

    return _apply


@pytest.fixture
def app_dir(tmp_path):
    d = tmp_path / "dream_recorder"
    d.mkdir()
    (d / ".env.example").write_text(ENV_EXAMPLE, encoding="utf-8")
    (d / "config.example.json").write_text(
        json.dumps({"GPIO_FLASK_URL": "http://localhost:5000", "LOG_LEVEL": "INFO"}),
        encoding="utf-8",
    )
    (d / "Dockerfile").write_text("FROM python:3.11-slim\n", encoding="utf-8")
    (d / "requirements.txt").write_text("flask\n", encoding="utf-8")
    return d


class ScriptedPrompt:
    def __init__(self, *answers):
        self.answers = list(answers)
        self.asked = []

    def __call__(self, text):
        self.asked.append(text)
        return self.answers.pop(0)


@pytest.fixture
def make_ctx(app_dir, tmp_path):
    me = pwd.getpwuid(os.getuid())

    def _make(**overrides):
        kwargs = dict(
            app_dir=app_dir,
            settings=Settings(settle_s=0),
            user=me.pw_name,
            home=tmp_path / "home",
            env={"PORT": "5000"},
            kiosk=False,
            validate_keys=False,
            prompt=ScriptedPrompt(OPENAI_KEY, LUMA_KEY),
            unit_dir_override=tmp_path / "units",
        )
        kwargs.update(overrides)
        return InstallContext(**kwargs)

    return _make


@pytest.fixture(autouse=True)
def isolated_logging():
    """configure_logging() installs root handlers once per process; undo that per test."""

    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    for attr in ("_dream_installer_configured", "_dream_installer_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)
