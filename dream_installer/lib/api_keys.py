from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


def probe_key(url: str, key: str, *, client: httpx.Client) -> bool:
    try:
        r = client.get(url, headers={"Authorization": f"Bearer {key}"})
    except httpx.HTTPError as e:
        logger.warning("Could not reach %s: %s", url, e)
        return False
    except ValueError as e:
        # Header values are ASCII only; a pasted curly quote ends up here.
        logger.warning("Key for %s cannot be sent as a header: %s", url, type(e).__name__)
        return False
    return r.status_code == 200


def validate_api_keys(
    keys: Mapping[str, str],
    probes: Mapping[str, str],
    *,
    client: Optional[httpx.Client] = None,
    timeout_s: float = 15.0,
) -> Dict[str, bool]:
    """Check each env key against its provider endpoint. Keys without a probe URL are skipped."""

    owns_client = client is None
    client = client or httpx.Client(timeout=timeout_s)
    results: Dict[str, bool] = {}
    try:
        for name, url in probes.items():
            key = keys.get(name)
            if not key:
                logger.warning("%s is not set in the env file", name)
                results[name] = False
                continue
            results[name] = probe_key(url, key, client=client)
            if results[name]:
                logger.info("%s is valid", name)
            else:
                logger.warning("%s was rejected by %s", name, url)
    finally:
        if owns_client:
            client.close()
    return results
