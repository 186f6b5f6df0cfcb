"""Authentication for task routes.

Task callers present a Cloud Tasks OIDC token. In local development the
shared ``X-Internal-Task-Secret`` header is accepted instead.
"""

from __future__ import annotations

import os

from fastapi import Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Audience value that switches on the internal-secret fallback
LOCAL_DEV_AUDIENCE = "chatrelay-tasks-local"

INTERNAL_SECRET_HEADER = "X-Internal-Task-Secret"


def extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[len("Bearer "):]


def verify_task_oidc(token: str) -> bool:
    """Verify an OIDC token against TASKS_OIDC_AUDIENCE.

    Fails closed when the audience is not configured. When
    TASKS_OIDC_SERVICE_ACCOUNT is set the token email must match it.
    """
    if not token:
        return False

    audience = os.environ.get("TASKS_OIDC_AUDIENCE")
    if not audience:
        logger.error(
            "TASKS_OIDC_AUDIENCE not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_audience_env")},
        )
        return False

    try:
        claims = id_token.verify_oauth2_token(
            token, google_requests.Request(), audience=audience
        )
    except ValueError as e:
        logger.warning(
            "OIDC token verification failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return False

    expected_email = os.environ.get("TASKS_OIDC_SERVICE_ACCOUNT")
    if expected_email and claims.get("email", "") != expected_email:
        logger.warning(
            "OIDC service account mismatch",
            extra={"extra_fields": safe_log_context(reason="email_mismatch")},
        )
        return False

    return True


def verify_task_auth(request: Request) -> bool:
    """Return True if the request carries valid task credentials."""
    audience = os.environ.get("TASKS_OIDC_AUDIENCE", "")

    if audience == LOCAL_DEV_AUDIENCE:
        internal_secret = os.environ.get("INTERNAL_TASK_SECRET", "")
        request_secret = request.headers.get(INTERNAL_SECRET_HEADER, "")
        if internal_secret and request_secret == internal_secret:
            return True

    token = extract_bearer_token(request)
    if not token:
        logger.warning(
            "task auth failed: missing Bearer token",
            extra={"extra_fields": safe_log_context(reason="missing_bearer_token")},
        )
        return False
    return verify_task_oidc(token)
