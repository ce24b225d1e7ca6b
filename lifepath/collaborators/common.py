"""Shared HTTP helper for collaborator services."""

from typing import Any, Dict

import requests

from ..errors import CollaboratorTimeout, CollaboratorUnavailable
from ..logger import get_logger
from ..retry import should_retry_http_status

logger = get_logger()


def post_json_with_error_handling(
    session: requests.Session,
    url: str,
    payload: Dict[str, Any],
    collaborator: str,
    timeout: float,
) -> Dict[str, Any]:
    """POST a JSON payload and return the decoded JSON body.

    Retries are left to the caller (the coordinator owns the retry policy).

    Raises:
        CollaboratorTimeout: The request timed out
        CollaboratorUnavailable: Connection failure, HTTP error or a non-JSON body
    """
    try:
        resp = session.post(url, json=payload, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.Timeout as e:
        logger.warning(f"{collaborator} request timed out", url=url, timeout=timeout)
        raise CollaboratorTimeout(f"{collaborator} request timed out", url=url) from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        transient = isinstance(status, int) and should_retry_http_status(status)
        logger.error(f"{collaborator} request failed", url=url, status=status, transient=transient)
        raise CollaboratorUnavailable(
            f"{collaborator} request failed ({status})", url=url, status=status, transient=transient
        ) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"{collaborator} request error", url=url, error=str(e))
        raise CollaboratorUnavailable(f"{collaborator} request error: {e}", url=url) from e

    try:
        body = resp.json()
    except ValueError as e:
        raise CollaboratorUnavailable(f"{collaborator} returned a non-JSON body", url=url) from e
    if not isinstance(body, dict):
        raise CollaboratorUnavailable(f"{collaborator} returned an unexpected body", url=url)
    return body
