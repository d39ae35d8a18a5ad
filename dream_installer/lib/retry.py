from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import httpx

from ..errors import DownloadExhausted, ServiceTimeout
from .systemd import is_active as systemd_is_active

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    connect_timeout_s: float = 30.0
    max_time_s: float = 300.0
    backoff_s: float = 10.0


Fetch = Callable[[str, Path, RetryPolicy], None]
Sleep = Callable[[float], None]


def http_fetch(
    url: str,
    destination: Path,
    policy: RetryPolicy,
    *,
    client: Optional[httpx.Client] = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Stream url to destination, bounded by the policy's connect and overall timeouts.

    A partially written destination is removed before the error propagates.
    """

    deadline = clock() + policy.max_time_s
    timeout = httpx.Timeout(policy.max_time_s, connect=policy.connect_timeout_s)
    destination.parent.mkdir(parents=True, exist_ok=True)
    owns_client = client is None
    client = client or httpx.Client()
    try:
        with client.stream("GET", url, timeout=timeout, follow_redirects=True) as response:
            response.raise_for_status()
            with destination.open("wb") as f:
                for chunk in response.iter_bytes():
                    if clock() > deadline:
                        raise httpx.TimeoutException(f"exceeded {policy.max_time_s}s fetching {url}")
                    f.write(chunk)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    finally:
        if owns_client:
            client.close()


def download_with_retry(
    url: str,
    destination: Path,
    policy: RetryPolicy = RetryPolicy(),
    *,
    fetch: Optional[Fetch] = None,
    sleep: Sleep = time.sleep,
) -> int:
    """Fetch url with bounded retries. Returns the number of attempts used."""

    fetch = fetch or http_fetch
    for attempt in range(1, policy.max_attempts + 1):
        logger.info("Download attempt %s of %s...", attempt, policy.max_attempts)
        try:
            fetch(url, destination, policy)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Download attempt %s failed: %s", attempt, e)
            if attempt < policy.max_attempts:
                sleep(policy.backoff_s)
            continue
        logger.info("Download successful")
        return attempt

    raise DownloadExhausted(url, policy.max_attempts)


def wait_for_service(
    service: str,
    timeout_s: int = 30,
    *,
    is_active: Optional[Callable[[str], bool]] = None,
    sleep: Sleep = time.sleep,
) -> None:
    """Poll the service state once per second until active or timeout_s seconds have passed."""

    is_active = is_active or systemd_is_active
    for _ in range(timeout_s):
        if is_active(service):
            logger.info("%s is ready", service)
            return
        sleep(1)
    raise ServiceTimeout(service, timeout_s)


def settle(seconds: float, *, sleep: Sleep = time.sleep) -> None:
    if seconds > 0:
        logger.info("Waiting %ss for the application to come up...", seconds)
        sleep(seconds)
