"""Thin ``requests`` helpers shared by every source.

Translates transport-level outcomes into the pipeline's exception taxonomy:
a timeout becomes ``RequestTimedOut``, a non-2xx status or a connection
failure becomes ``TransportError``. Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from pulse.errors import RequestTimedOut, TransportError

logger = logging.getLogger(__name__)

#: Sent with every upstream request; Reddit rejects requests without one.
USER_AGENT = "MarketPulse/1.0"


def new_session() -> requests.Session:
    """Return a ``requests.Session`` carrying the default User-Agent."""
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    return session


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    service: str,
    timeout: float,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    json: Any = None,
    data: Any = None,
    auth: Any = None,
) -> Any:
    """Issue one request and return the decoded JSON body.

    Args:
        session: Session used for the call (injected so tests can mock it).
        method: HTTP verb.
        url: Absolute URL.
        service: Human-readable upstream name used in error messages.
        timeout: Total timeout in seconds.

    Raises:
        RequestTimedOut: The request exceeded *timeout*.
        TransportError: Non-2xx status, connection failure or non-JSON body.
    """
    logger.debug("%s %s params=%s", method, url, params)
    try:
        response = session.request(
            method,
            url,
            params=params,
            headers=headers,
            json=json,
            data=data,
            auth=auth,
            timeout=timeout,
        )
    except requests.Timeout as exc:
        logger.warning("%s request timed out after %ss: %s", service, timeout, url)
        raise RequestTimedOut() from exc
    except requests.RequestException as exc:
        raise TransportError(service, None, str(exc)) from exc

    if not response.ok:
        logger.warning("%s returned HTTP %s for %s", service, response.status_code, url)
        raise TransportError(service, response.status_code)

    try:
        return response.json()
    except ValueError as exc:
        raise TransportError(service, response.status_code, "invalid JSON body") from exc


def get_json(session: requests.Session, url: str, **kwargs: Any) -> Any:
    """``request_json`` with ``GET``."""
    return request_json(session, "GET", url, **kwargs)


def post_json(session: requests.Session, url: str, **kwargs: Any) -> Any:
    """``request_json`` with ``POST``."""
    return request_json(session, "POST", url, **kwargs)
