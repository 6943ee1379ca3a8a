"""
Client for the external IPTV renewal API.

One request per call, no retries here: retrying is the renewal queue consumer's job.
The response body's ``success`` flag is authoritative; the HTTP status is not.
"""
import logging
from typing import Any, Dict

import httpx

from app.services.errors import RenewalTransportError
from app.services.settings import RenewalApiConfig

logger = logging.getLogger(__name__)


def _post(config: RenewalApiConfig, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    url = f"{config.url}{path}"
    headers = {
        "X-API-Key": config.api_key,
        "Content-Type": "application/json",
    }
    try:
        with httpx.Client(timeout=config.timeout) as client:
            resp = client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as e:
        logger.error("Renewal API request to %s failed: %s", path, e)
        raise RenewalTransportError(f"Renewal API unreachable: {e}") from e

    try:
        body = resp.json()
    except ValueError:
        logger.error("Renewal API %s returned non-JSON body (HTTP %s)", path, resp.status_code)
        return {"success": False, "error": f"HTTP {resp.status_code}: {resp.text[:500]}"}

    if not isinstance(body, dict):
        return {"success": False, "error": f"Unexpected response: {body!r}"[:500]}
    if resp.status_code >= 400:
        logger.warning("Renewal API %s answered HTTP %s: %s", path, resp.status_code, body)
    return body


def renew(config: RenewalApiConfig, payload: Dict[str, Any]) -> Dict[str, Any]:
    """POST {api_url}/renew. Raises RenewalTransportError on network failure."""
    return _post(config, "/renew", payload)


def list_sigma_packages(config: RenewalApiConfig, username: str, password: str, sigma_domain: str) -> Dict[str, Any]:
    """POST {api_url}/sigma/packages: plan codes available on a Sigma panel."""
    return _post(
        config,
        "/sigma/packages",
        {
            "credentials": {"username": username, "password": password},
            "sigma_domain": sigma_domain,
        },
    )
