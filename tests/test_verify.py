"""Tests for post-install verification."""

import datetime as dt

import httpx
import pytest

from dream_installer.errors import ContainersNotRunning, FilesystemErrorsDetected, InsufficientDiskSpace
from dream_installer.lib import verify

TODAY = dt.date(2026, 3, 14)

DMESG_OLD_ERROR = (
    "2026-03-01T09:12:44,123456+00:00 EXT4-fs error (device mmcblk0p2): ext4_lookup:1785: inode #2\n"
    "2026-03-14T08:00:00,000000+00:00 usb 1-1.3: new high-speed USB device\n"
)
DMESG_NEW_ERROR = DMESG_OLD_ERROR + (
    "2026-03-14T10:21:03,654321+00:00 EXT4-fs error (device mmcblk0p2): ext4_find_entry:1455: reading directory\n"
)


def _client(status=200, calls=None):
    def handler(request):
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _unreachable_client():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestProbeHealth:
    def test_healthy(self):
        calls = []
        assert verify.probe_health("http://localhost:5000/", client=_client(200, calls)) is True
        assert calls == ["http://localhost:5000/health"]

    def test_server_error_is_soft(self):
        assert verify.probe_health("http://localhost:5000", client=_client(503)) is False

    def test_unreachable_is_soft(self):
        assert verify.probe_health("http://localhost:5000", client=_unreachable_client()) is False


class TestContainers:
    def test_up(self, shell, app_dir):
        shell.on("docker", "compose", "-f", "c.yml", "ps", stdout="dream-app-1  Up 12 seconds (healthy)")
        verify.check_containers(app_dir, "c.yml")
        assert shell.calls[0]["cwd"] == str(app_dir)

    def test_not_up_dumps_logs(self, shell, app_dir, caplog):
        shell.on("docker", "compose", "-f", "c.yml", "ps", stdout="dream-app-1  Exited (1)")
        shell.on("docker", "compose", "-f", "c.yml", "logs", stdout="Traceback: ImportError flask")

        with pytest.raises(ContainersNotRunning):
            verify.check_containers(app_dir, "c.yml")

        assert shell.ran("docker", "compose", "-f", "c.yml", "logs", "--no-color")
        assert "ImportError flask" in caplog.text

    def test_ps_failure(self, shell, app_dir):
        shell.on("docker", "compose", "-f", "c.yml", "ps", returncode=1, stderr="no such file")
        with pytest.raises(ContainersNotRunning) as exc:
            verify.check_containers(app_dir, "c.yml")
        assert exc.value.returncode == 1


class TestFilesystemErrors:
    def test_old_errors_ignored(self):
        assert verify.find_filesystem_errors(DMESG_OLD_ERROR, today=TODAY) == []

    def test_todays_errors_found(self):
        hits = verify.find_filesystem_errors(DMESG_NEW_ERROR, today=TODAY)
        assert len(hits) == 1
        assert "ext4_find_entry" in hits[0]

    def test_scan_raises_on_new_errors(self, shell):
        shell.on("dmesg", stdout=DMESG_NEW_ERROR)
        with pytest.raises(FilesystemErrorsDetected):
            verify.scan_filesystem_errors(today=TODAY)
        assert shell.argvs() == [["dmesg", "--time-format", "iso"]]

    def test_scan_clean(self, shell):
        shell.on("dmesg", stdout=DMESG_OLD_ERROR)
        assert verify.scan_filesystem_errors(today=TODAY) == []

    def test_unreadable_kernel_log_is_skipped(self, shell, caplog):
        shell.on("dmesg", returncode=1, stderr="dmesg: read kernel buffer failed: Operation not permitted")
        assert verify.scan_filesystem_errors(today=TODAY) == []
        assert "skipping filesystem check" in caplog.text


class TestVerify:
    def _rules(self, shell, dmesg=""):
        shell.on("docker", "compose", "-f", "docker-compose.safe.yml", "ps", stdout="app  Up 3 seconds")
        shell.on("dmesg", stdout=dmesg)

    def test_report(self, shell, app_dir, fake_host):
        fake_host(free_gb=8)
        self._rules(shell)

        report = verify.verify(
            "http://localhost:5000",
            app_dir=app_dir,
            compose_file="docker-compose.safe.yml",
            min_disk_gb=3,
            client=_client(200),
            today=TODAY,
        )

        assert report.to_dict() == {
            "app_url": "http://localhost:5000",
            "healthy": True,
            "containers_up": True,
            "fs_errors": [],
            "disk_free_gb": 8,
        }

    def test_unhealthy_app_still_passes(self, shell, app_dir, fake_host):
        fake_host(free_gb=8)
        self._rules(shell)

        report = verify.verify(
            "http://localhost:5000",
            app_dir=app_dir,
            compose_file="docker-compose.safe.yml",
            min_disk_gb=3,
            client=_unreachable_client(),
            today=TODAY,
        )
        assert report.healthy is False
        assert report.containers_up is True

    def test_low_disk_after_install_fails(self, shell, app_dir, fake_host):
        fake_host(free_gb=2)
        self._rules(shell)
        with pytest.raises(InsufficientDiskSpace):
            verify.verify(
                "http://localhost:5000",
                app_dir=app_dir,
                compose_file="docker-compose.safe.yml",
                min_disk_gb=3,
                client=_client(200),
                today=TODAY,
            )
