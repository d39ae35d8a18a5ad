"""Tests for generated deployment artifacts (compose file, units, kiosk files)."""

import os
import stat

import yaml

from dream_installer.lib import artifacts


class TestComposeManifest:
    def _load(self, tmp_path, **kwargs):
        path = artifacts.write_compose(tmp_path / "docker-compose.safe.yml", image="dream_recorder:latest", **kwargs)
        return path, yaml.safe_load(path.read_text(encoding="utf-8"))

    def test_single_app_service(self, tmp_path):
        _, doc = self._load(tmp_path)
        assert list(doc["services"]) == ["app"]
        app = doc["services"]["app"]
        assert app["image"] == "dream_recorder:latest"
        assert app["restart"] == "unless-stopped"
        assert app["env_file"] == [".env"]
        assert app["command"] == "python dream_recorder.py"

    def test_port_defaults_through_variable(self, tmp_path):
        _, doc = self._load(tmp_path)
        app = doc["services"]["app"]
        assert app["ports"] == ["${PORT:-5000}:${PORT:-5000}"]
        assert "PORT=${PORT:-5000}" in app["environment"]
        assert "HOST=0.0.0.0" in app["environment"]

    def test_resource_limits(self, tmp_path):
        _, doc = self._load(tmp_path)
        res = doc["services"]["app"]["deploy"]["resources"]
        assert res["limits"] == {"memory": "1G", "cpus": "2.0"}
        assert res["reservations"] == {"memory": "512M", "cpus": "1.0"}

    def test_named_volumes_declared(self, tmp_path):
        _, doc = self._load(tmp_path)
        mounts = doc["services"]["app"]["volumes"]
        assert mounts == ["db-data:/app/db", "media-data:/app/media", "logs-data:/app/logs"]
        assert set(doc["volumes"]) == {"db-data", "media-data", "logs-data"}

    def test_healthcheck(self, tmp_path):
        _, doc = self._load(tmp_path)
        hc = doc["services"]["app"]["healthcheck"]
        assert hc["test"] == ["CMD", "curl", "-f", "http://localhost:${PORT:-5000}/health"]
        assert (hc["interval"], hc["timeout"], hc["retries"]) == ("30s", "10s", 3)

    def test_custom_port(self, tmp_path):
        _, doc = self._load(tmp_path, port=8080)
        assert doc["services"]["app"]["ports"] == ["${PORT:-8080}:${PORT:-8080}"]

    def test_rewrite_is_idempotent(self, tmp_path):
        path, _ = self._load(tmp_path)
        first = path.read_text(encoding="utf-8")
        self._load(tmp_path)
        assert path.read_text(encoding="utf-8") == first


class TestDockerignore:
    def test_excludes_secrets_and_vcs(self, tmp_path):
        path = artifacts.write_dockerignore(tmp_path / ".dockerignore")
        lines = path.read_text(encoding="utf-8").splitlines()
        for entry in (".git", ".env*", "kiosk/", "logs/"):
            assert entry in lines


class TestServiceUnits:
    def test_compose_unit(self, tmp_path):
        unit = artifacts.docker_compose_unit(
            name="dream_recorder_docker.service",
            app_dir=tmp_path / "app",
            compose_file="docker-compose.safe.yml",
        )
        path = artifacts.write_unit(unit, tmp_path / "units")
        text = path.read_text(encoding="utf-8")

        assert path.name == "dream_recorder_docker.service"
        assert "Type=oneshot\nRemainAfterExit=yes\n" in text
        assert "After=network.target docker.service\nRequires=docker.service\n" in text
        assert f"WorkingDirectory={tmp_path / 'app'}\n" in text
        assert "ExecStart=/usr/bin/docker compose -f docker-compose.safe.yml up -d\n" in text
        assert "ExecStop=/usr/bin/docker compose -f docker-compose.safe.yml down\n" in text
        assert text.rstrip().endswith("WantedBy=multi-user.target")
        assert "User=" not in text
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o644

    def test_gpio_unit(self, tmp_path):
        app = tmp_path / "app"
        unit = artifacts.gpio_unit(
            name="dream_recorder_gpio.service",
            app_dir=app,
            script="gpio_service.py",
            user="pi",
            log_path="/var/log/dream_recorder_gpio.log",
            docker_unit="dream_recorder_docker.service",
        )
        text = artifacts.write_unit(unit, tmp_path / "units").read_text(encoding="utf-8")

        assert "Type=simple\n" in text
        assert "After=network.target dream_recorder_docker.service\n" in text
        assert "User=pi\n" in text
        assert f"ExecStart=/usr/bin/python3 {app / 'gpio_service.py'}\n" in text
        assert "Restart=on-failure\nRestartSec=5\n" in text
        assert "StandardOutput=append:/var/log/dream_recorder_gpio.log\n" in text
        assert "Requires=" not in text
        assert "RemainAfterExit" not in text

    def test_dry_run_writes_nothing(self, tmp_path):
        unit = artifacts.docker_compose_unit(name="x.service", app_dir=tmp_path, compose_file="c.yml")
        path = artifacts.write_unit(unit, tmp_path / "units", dry_run=True)
        assert path == tmp_path / "units" / "x.service"
        assert not path.exists()


class TestKiosk:
    def test_writes_all_files(self, tmp_path):
        out = artifacts.write_kiosk(
            kiosk_dir=tmp_path / "kiosk",
            autostart_dir=tmp_path / "autostart",
            app_url="http://localhost:5000",
            browsers=("chromium-browser", "firefox-esr"),
        )

        page = out.loading_page.read_text(encoding="utf-8")
        assert '"http://localhost:5000"' in page
        assert "/health" in page

        launcher = out.launcher.read_text(encoding="utf-8")
        assert launcher.startswith("#!/bin/sh\n")
        assert "for browser in chromium-browser firefox-esr; do" in launcher
        assert f"file://{out.loading_page}" in launcher
        assert os.access(out.launcher, os.X_OK)
        assert os.access(out.blanking_script, os.X_OK)
        assert "xset s off" in out.blanking_script.read_text(encoding="utf-8")

        names = sorted(p.name for p in out.autostart_entries)
        assert names == ["disable-screen-blanking.desktop", "dream_recorder_kiosk.desktop"]
        entry = (tmp_path / "autostart" / "dream_recorder_kiosk.desktop").read_text(encoding="utf-8")
        assert "[Desktop Entry]" in entry
        assert f"Exec={out.launcher}" in entry

    def test_dry_run_skips_autostart(self, tmp_path):
        out = artifacts.write_kiosk(
            kiosk_dir=tmp_path / "kiosk",
            autostart_dir=tmp_path / "autostart",
            app_url="http://localhost:5000",
            browsers=("chromium",),
            dry_run=True,
        )
        assert out.launcher.exists()
        assert not (tmp_path / "autostart").exists()


class TestChown:
    def test_unknown_user_is_a_warning(self, tmp_path, caplog):
        f = tmp_path / "f"
        f.write_text("x", encoding="utf-8")
        artifacts.chown_paths([f], "no-such-user-dream-installer")
        assert "not found" in caplog.text
