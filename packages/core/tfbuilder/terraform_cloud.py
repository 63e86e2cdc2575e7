"""Terraform Cloud token validation.

A single authenticated request; any 2xx means the token is good. Failures of
any kind report ``False`` and never raise.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
import urllib.error
import urllib.request

import certifi

from tfbuilder.config import DEFAULT_TERRAFORM_API_URL

logger = logging.getLogger(__name__)

DEMO_TOKEN = "demo-token"
TEST_TOKEN_PREFIX = "test-token"


def _ssl_context() -> ssl.SSLContext:
    return ssl.create_default_context(cafile=certifi.where())


def is_demo_token(token: str) -> bool:
    return token.startswith(TEST_TOKEN_PREFIX) or token == DEMO_TOKEN


def check_token(token: str, url: str = DEFAULT_TERRAFORM_API_URL, timeout: float = 10.0) -> bool:
    """Blocking validation call. Returns True on any 2xx response."""
    req = urllib.request.Request(
        url,
        data=b"",
        method="POST",
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/vnd.api+json",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout, context=_ssl_context()) as resp:
            return 200 <= resp.status < 300
    except urllib.error.HTTPError as e:
        logger.info("Terraform Cloud rejected token: HTTP %s", e.code)
        return False
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.warning("Token validation failed: %s", e)
        return False


async def validate_token(
    token: str | None, url: str = DEFAULT_TERRAFORM_API_URL, timeout: float = 10.0
) -> bool:
    """Validate a Terraform Cloud token without blocking the event loop.

    ``test-token*`` and ``demo-token`` are accepted without a network call.
    """
    if not token:
        return False
    if is_demo_token(token):
        logger.debug("Accepting demo token without a network call")
        return True
    try:
        return await asyncio.wait_for(asyncio.to_thread(check_token, token, url, timeout), timeout + 1)
    except asyncio.TimeoutError:
        logger.warning("Token validation timed out after %.1fs", timeout)
        return False
