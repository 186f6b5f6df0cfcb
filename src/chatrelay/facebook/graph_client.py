"""Messenger Platform client over the Facebook Graph API.

Implements the PlatformClient contract:
- send_message: Send API (sender actions and content messages)
- get_user_info: User Profile API

Requests are blocking urllib calls run in a worker thread so concurrent
sends do not hold up the event loop. There is no retry here; callers own
retry policy.

Security: NEVER log recipient ids, text or the page access token. Only
log hashes and lengths.
"""

import asyncio
import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Sequence

from chatrelay.messenger.client import PlatformError
from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

# Timeout for HTTP requests (seconds)
HTTP_TIMEOUT = 5

DEFAULT_GRAPH_API_VERSION = "v18.0"

GRAPH_BASE_URL = "https://graph.facebook.com"


def _get_config(
    page_access_token: str | None = None,
    api_version: str | None = None,
) -> dict[str, str]:
    """Get Graph API config from params or environment.

    Required env vars (if not provided as args):
    - FB_PAGE_ACCESS_TOKEN: Page access token

    Optional:
    - FB_GRAPH_API_VERSION: Graph API version (default: v18.0)
    """
    resolved_token = page_access_token or os.environ.get("FB_PAGE_ACCESS_TOKEN", "")
    if not resolved_token:
        raise RuntimeError("Missing Messenger config: FB_PAGE_ACCESS_TOKEN required")

    resolved_version = api_version or os.environ.get(
        "FB_GRAPH_API_VERSION", DEFAULT_GRAPH_API_VERSION
    )

    return {"access_token": resolved_token, "api_version": resolved_version}


def _do_request(
    url: str,
    *,
    method: str = "GET",
    data: bytes | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Execute an HTTP request and decode the JSON response. Raises on error."""
    req = urllib.request.Request(url, data=data, headers=headers or {}, method=method)
    with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
        return json.loads(resp.read().decode())


def _graph_error_message(exc: urllib.error.HTTPError) -> str:
    """Pull the Graph API error message out of an HTTP error body."""
    try:
        body = json.loads(exc.read().decode())
        return str(body.get("error", {}).get("message") or f"HTTP {exc.code}")
    except (ValueError, AttributeError, OSError):
        return f"HTTP {exc.code}"


class GraphApiClient:
    """PlatformClient backed by the Graph API.

    Holds only immutable config, so one instance can serve every
    concurrent send.
    """

    def __init__(
        self,
        page_access_token: str | None = None,
        api_version: str | None = None,
    ):
        config = _get_config(page_access_token, api_version)
        self._access_token = config["access_token"]
        self._api_version = config["api_version"]

    def _url(self, path: str, **params: str) -> str:
        url = f"{GRAPH_BASE_URL}/{self._api_version}/{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return url

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(
        self,
        operation: str,
        url: str,
        log_ctx: dict[str, str],
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(_do_request, url, **kwargs)
        except urllib.error.HTTPError as e:
            logger.error(
                f"graph {operation} failed",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, status_code=e.code, error_type="HTTPError"
                    )
                },
            )
            raise PlatformError(_graph_error_message(e), status_code=e.code) from e
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            logger.error(
                f"graph {operation} failed",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, error_type=type(e).__name__
                    )
                },
            )
            raise PlatformError(f"graph {operation} failed: {type(e).__name__}") from e

    async def send_message(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST a Send API body (sender action or message).

        Raises:
            PlatformError: On network, HTTP or decoding errors.
        """
        recipient_id = str(body.get("recipient", {}).get("id", ""))
        log_ctx = safe_log_context(
            recipient_hash=hash_identifier(recipient_id),
            sender_action=body.get("sender_action", ""),
            has_message="message" in body,
        )

        response = await self._request(
            "send",
            self._url("me/messages"),
            log_ctx,
            method="POST",
            data=json.dumps(body).encode("utf-8"),
            headers={**self._headers(), "Content-Type": "application/json"},
        )
        logger.debug("graph send ok", extra={"extra_fields": log_ctx})
        return response

    async def get_user_info(
        self, recipient_id: str, required_fields: Sequence[str]
    ) -> dict[str, str]:
        """Fetch the requested profile fields for a page-scoped user id.

        Only requested fields are returned, stringified. Fields the API
        leaves out are simply absent.

        Raises:
            PlatformError: On network, HTTP or decoding errors.
        """
        log_ctx = safe_log_context(
            recipient_hash=hash_identifier(recipient_id),
            field_count=len(required_fields),
        )
        url = self._url(
            urllib.parse.quote(recipient_id, safe=""),
            fields=",".join(required_fields),
        )

        response = await self._request(
            "user info", url, log_ctx, headers=self._headers()
        )
        return {
            name: str(response[name])
            for name in required_fields
            if response.get(name) is not None
        }
