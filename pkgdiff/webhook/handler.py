"""
Webhook Handler Module

This module defines the FastAPI endpoints for handling GitHub webhooks.

Design Decisions:
- Verify the signature before reading anything from the payload
- Ignore (200) events and actions the bot does not handle
- Run the pipeline inline so the response carries the outcome,
  including the rendered comment in dry-run mode
- Map pipeline failures to explicit HTTP errors
"""

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import ValidationError

from pkgdiff.logging_config import bind_delivery_context, get_logger
from pkgdiff.models import PRContext, PullRequestWebhookPayload
from pkgdiff.services.dependency_diff import ManifestParseError
from pkgdiff.services.github_auth import GitHubAuthError
from pkgdiff.services.github_client import GitHubAPIError
from pkgdiff.webhook.processor import process_pull_request
from pkgdiff.webhook.security import (
    extract_delivery_id,
    validate_webhook_event,
    verify_webhook_signature,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/github", status_code=status.HTTP_200_OK)
async def github_webhook(
    request: Request,
    dry: bool = Query(default=False, description="Return the comment instead of posting it")
) -> Dict[str, Any]:
    """
    GitHub webhook endpoint.

    Receives pull_request events, diffs the dependencies declared in every
    modified package.json and comments on the head commit.

    Args:
        request: FastAPI request object
        dry: Dry-run flag from the query string

    Returns:
        JSON response with the outcome and delivery ID

    Raises:
        HTTPException: On validation, security or pipeline failures
    """
    delivery_id = extract_delivery_id(request)
    bind_delivery_context(delivery_id)

    logger.info(
        "Received GitHub webhook",
        remote_addr=request.client.host if request.client else "unknown"
    )

    raw_body = await request.body()

    # Signature first, nothing else is trusted until it passes
    await verify_webhook_signature(request, raw_body)

    event_type = request.headers.get("X-GitHub-Event")

    try:
        payload_dict = await request.json() if raw_body else {}
    except ValueError as e:
        logger.error("Failed to parse webhook payload", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload"
        )

    action = payload_dict.get("action") if isinstance(payload_dict, dict) else None
    if not validate_webhook_event(event_type, action):
        return {
            "status": "ignored",
            "reason": f"Event type '{event_type}' with action '{action}' not processed",
            "delivery_id": delivery_id
        }

    try:
        payload = PullRequestWebhookPayload(**payload_dict)
    except ValidationError as e:
        logger.error("Invalid webhook payload", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid payload: {e}"
        )

    pr_context = PRContext.from_payload(payload, dry_run=dry)

    logger.info(
        "Processing pull request",
        repo=pr_context.base_repo,
        pr_number=pr_context.pr_number,
        action=action,
        dry_run=dry
    )

    try:
        result = await process_pull_request(pr_context)
    except ManifestParseError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except GitHubAPIError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"GitHub API error ({e.status_code}): {e}"
        )
    except GitHubAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"GitHub authentication failed: {e}"
        )

    response = result.to_response()
    response["delivery_id"] = delivery_id
    return response


@router.get("/health")
async def webhook_health() -> Dict[str, str]:
    """
    Health check endpoint for the webhook service.

    Returns:
        Simple health status
    """
    return {"status": "healthy", "service": "webhook"}
