from __future__ import annotations

from typing import Optional


class InstallerError(Exception):
    """Base class for every failure the installer knows how to report."""


class ValidationError(InstallerError):
    """A host prerequisite or user input did not pass validation."""


class InsufficientDiskSpace(ValidationError):
    def __init__(self, required_gb: int, available_gb: int):
        self.required_gb = required_gb
        self.available_gb = available_gb
        super().__init__(
            f"Insufficient disk space. Required: {required_gb}GB, Available: {available_gb}GB"
        )


class InsufficientMemory(ValidationError):
    def __init__(self, required_mb: int, available_mb: int):
        self.required_mb = required_mb
        self.available_mb = available_mb
        super().__init__(
            f"Insufficient memory. Required: {required_mb}MB, Available: {available_mb}MB"
        )


class MissingFile(ValidationError):
    def __init__(self, name: str, directory: str):
        self.name = name
        self.directory = directory
        super().__init__(f"{name} not found in {directory}")


class InvalidSecretFormat(ValidationError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"{key} must be at least 20 characters of letters, digits, '_' or '-'"
        )


class DownloadError(InstallerError):
    pass


class DownloadExhausted(DownloadError):
    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Download of {url} failed after {attempts} attempts")


class ServiceTimeout(InstallerError):
    def __init__(self, service: str, timeout_s: int):
        self.service = service
        self.timeout_s = timeout_s
        super().__init__(f"{service} failed to start within {timeout_s} seconds")


class StepError(InstallerError):
    """An external tool reported failure."""

    def __init__(self, message: str, *, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class ContainersNotRunning(StepError):
    pass


class FilesystemErrorsDetected(StepError):
    pass


class ArtifactWriteError(InstallerError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to write {path}: {reason}")
