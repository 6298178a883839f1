"""JSON-over-HTTP helper shared by the Google service clients."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Set, Tuple

import aiohttp

from ..exceptions import AuthError, NetworkError, ServiceError

logger = logging.getLogger(__name__)

# Reasons Google APIs attach to a 400 when the key itself is bad.
_INVALID_KEY_REASONS = {"API_KEY_INVALID", "API_KEY_EXPIRED", "API_KEY_SERVICE_BLOCKED"}


def require_credential(credential: Optional[str]) -> str:
    """Return the credential, or raise :class:`AuthError` when it is missing."""
    if not credential or not credential.strip():
        raise AuthError("No API key configured. Enter a Google API key first.")
    return credential.strip()


async def post_json(
    url: str,
    payload: Mapping[str, Any],
    *,
    params: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None,
    service: str = "service",
) -> Dict[str, Any]:
    """
    POST ``payload`` as JSON and return the decoded JSON object.

    Args:
        url: Endpoint URL without query string.
        payload: JSON-serializable request body.
        params: Query parameters (the API key travels here for most Google APIs).
        headers: Extra request headers.
        session: Optional shared ``aiohttp`` session; a short-lived one is used otherwise.
        service: Human readable service name for error messages.

    Raises:
        AuthError: The service rejected the credential.
        NetworkError: The service could not be reached.
        ServiceError: Any other non-2xx status, or a body that is not a JSON object.
    """
    request_headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if headers:
        request_headers.update(headers)

    logger.debug("POST %s (%s)", url, service)
    try:
        if session is None:
            async with aiohttp.ClientSession() as own_session:
                status, body = await _send(own_session, url, payload, params, request_headers)
        else:
            status, body = await _send(session, url, payload, params, request_headers)
    except aiohttp.ClientError as exc:
        raise NetworkError(f"{service} request could not reach the server: {exc}") from exc

    logger.debug("%s answered %s (%d bytes)", service, status, len(body))
    if not 200 <= status < 300:
        raise _error_for_status(service, status, body)

    try:
        decoded = json.loads(body) if body else {}
    except json.JSONDecodeError as exc:
        raise ServiceError(f"{service} response was not valid JSON", status=status) from exc

    if not isinstance(decoded, dict):
        raise ServiceError(f"{service} response was not a JSON object", status=status)
    return decoded


async def _send(
    session: aiohttp.ClientSession,
    url: str,
    payload: Mapping[str, Any],
    params: Optional[Mapping[str, str]],
    headers: Mapping[str, str],
) -> Tuple[int, str]:
    async with session.post(url, params=params, headers=headers, json=payload) as response:
        return response.status, await response.text()


def _error_for_status(service: str, status: int, body: str) -> Exception:
    message, reasons, error_status = _parse_google_error(body)
    detail = message or body.strip() or "no details"

    if status in (401, 403) or error_status == "UNAUTHENTICATED" or reasons & _INVALID_KEY_REASONS:
        return AuthError(f"{service} rejected the API key ({status}): {detail}")
    return ServiceError(f"{service} request failed ({status}): {detail}", status=status)


def _parse_google_error(body: str) -> Tuple[str, Set[str], str]:
    """
    Pull message, reasons and status out of a Google error envelope.

    Shape:
        {"error": {"code": 400, "message": "...", "status": "INVALID_ARGUMENT",
                   "details": [{"reason": "API_KEY_INVALID", ...}]}}
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return "", set(), ""

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return "", set(), ""

    reasons: Set[str] = set()
    details = error.get("details")
    if isinstance(details, list):
        for item in details:
            if isinstance(item, dict) and isinstance(item.get("reason"), str):
                reasons.add(item["reason"])

    message = error.get("message") if isinstance(error.get("message"), str) else ""
    error_status = error.get("status") if isinstance(error.get("status"), str) else ""
    return message, reasons, error_status
