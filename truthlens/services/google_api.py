import logging
from typing import Any, Dict, Optional

import requests

from truthlens.exceptions import (
    UpstreamAuthError,
    UpstreamError,
    UpstreamParseError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


def raise_for_upstream(response: requests.Response, service: str) -> None:
    """Translate a non-2xx Google API response into the upstream error taxonomy."""
    if response.ok:
        return

    status = response.status_code
    body = response.text
    logger.warning(f"{service} API error {status}: {body[:300]}")

    if status == 401:
        raise UpstreamAuthError("Authentication failed - API key may be invalid or expired", status, body)
    if status == 403:
        raise UpstreamAuthError("API access forbidden - check API key permissions", status, body)
    if status == 429:
        raise UpstreamRateLimitError("Rate limit exceeded - too many requests", status, body)
    raise UpstreamError(f"{service} API error: {status} - {body}", status, body)


def post_json(
    session: requests.Session,
    url: str,
    api_key: str,
    payload: Dict[str, Any],
    timeout: float,
    service: str,
    params: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """POST a JSON body with the API key as query parameter and return the decoded reply."""
    if not api_key:
        raise UpstreamAuthError(f"Google Cloud API key is not configured for {service}")

    query = {"key": api_key}
    if params:
        query.update(params)

    try:
        response = session.post(url, params=query, json=payload, timeout=timeout)
    except requests.Timeout as e:
        raise UpstreamTimeoutError(f"{service} request timed out after {timeout}s: {e}")
    except requests.RequestException as e:
        raise UpstreamError(f"Network error connecting to {service} API: {e}")

    raise_for_upstream(response, service)

    try:
        return response.json()
    except ValueError:
        raise UpstreamParseError(f"{service} API returned a non-JSON body", response.status_code, response.text)
