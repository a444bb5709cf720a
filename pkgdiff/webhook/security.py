"""
Webhook Security Module

This module handles verification of GitHub webhook deliveries.
It checks the HMAC signature of the raw body and gates which
events and actions are processed.

Design Decisions:
- Use constant-time comparison to prevent timing attacks
- Verify signature before any payload processing
- Support both SHA-256 and legacy SHA-1 signatures (SHA-256 preferred)
"""

import hashlib
import hmac
from typing import AbstractSet, Optional

from fastapi import HTTPException, Request, status

from pkgdiff.config import get_settings
from pkgdiff.logging_config import get_logger

logger = get_logger(__name__)

PULL_REQUEST_EVENT = "pull_request"

SIGNATURE_HEADERS = (
    ("X-Hub-Signature-256", "sha256"),
    ("X-Hub-Signature", "sha1"),
)


def compute_signature(secret: str, raw_body: bytes, algorithm: str = "sha256") -> str:
    """
    Compute the signature header value GitHub would send.

    Args:
        secret: Shared webhook secret
        raw_body: Raw request body
        algorithm: "sha256" or "sha1"

    Returns:
        Header value such as ``sha256=<hex>``
    """
    hash_func = hashlib.sha256 if algorithm == "sha256" else hashlib.sha1
    digest = hmac.new(secret.encode(), raw_body, hash_func).hexdigest()
    return f"{algorithm}={digest}"


async def verify_webhook_signature(
    request: Request,
    raw_body: bytes
) -> bool:
    """
    Verify the GitHub webhook signature.

    Args:
        request: FastAPI request object
        raw_body: Raw request body bytes

    Returns:
        True if signature is valid

    Raises:
        HTTPException: If signature is missing or invalid
    """
    settings = get_settings()

    signature_header = None
    algorithm = None
    for header, header_algorithm in SIGNATURE_HEADERS:
        signature_header = request.headers.get(header)
        if signature_header:
            algorithm = header_algorithm
            break

    if not signature_header:
        logger.warning(
            "Missing webhook signature header",
            remote_addr=request.client.host if request.client else "unknown"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing webhook signature"
        )

    prefix, _, _ = signature_header.partition("=")
    if prefix != algorithm:
        logger.warning(
            "Invalid signature format",
            signature_header=signature_header[:50]
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature format"
        )

    expected = compute_signature(settings.github_webhook_secret, raw_body, algorithm)

    if not hmac.compare_digest(signature_header.encode(), expected.encode()):
        logger.warning(
            "Webhook signature mismatch",
            remote_addr=request.client.host if request.client else "unknown",
            algorithm=algorithm
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature"
        )

    logger.debug("Webhook signature verified", algorithm=algorithm)
    return True


def validate_webhook_event(
    event_type: Optional[str],
    action: Optional[str],
    valid_actions: Optional[AbstractSet[str]] = None
) -> bool:
    """
    Validate that we should process this webhook event.

    Only ``pull_request`` events with an accepted action are processed.

    Args:
        event_type: GitHub event type from X-GitHub-Event header
        action: Action from payload
        valid_actions: Accepted actions, defaults to the configured set

    Returns:
        True if we should process this event

    Raises:
        HTTPException: If the event type header is missing
    """
    if valid_actions is None:
        valid_actions = get_settings().valid_actions_set

    if not event_type:
        logger.debug("Missing event type header")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-GitHub-Event header"
        )

    if event_type != PULL_REQUEST_EVENT:
        logger.debug("Ignoring non-PR event", event_type=event_type)
        return False

    if action not in valid_actions:
        logger.debug("Ignoring PR action", action=action)
        return False

    return True


def extract_delivery_id(request: Request) -> Optional[str]:
    """
    Extract the webhook delivery ID from headers.

    Args:
        request: FastAPI request object

    Returns:
        Delivery ID or None
    """
    return request.headers.get("X-GitHub-Delivery")
