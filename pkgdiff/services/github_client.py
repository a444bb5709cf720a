"""
GitHub API Client Module

This module provides an async client for the three GitHub REST endpoints
the bot needs: compare two commits, read a file at a ref, and comment
on a commit.

Design Decisions:
- Use httpx for async HTTP requests
- Rate limit client-side with aiolimiter
- Retry only transport failures and rate-limit exhaustion; API errors
  surface to the caller unchanged
- Build error messages from GitHub's error payload so they are readable
  in logs and webhook responses
"""

import asyncio
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from aiolimiter import AsyncLimiter
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pkgdiff.config import Settings, get_settings
from pkgdiff.logging_config import get_logger
from pkgdiff.models import CommitComment, CompareFile
from pkgdiff.services.github_auth import GitHubAuth, GitHubAuthError, get_github_auth

logger = get_logger(__name__)

API_VERSION = "2022-11-28"
JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw"

# One limiter per hourly budget, shared by every client in the process
_rate_limiters: Dict[int, AsyncLimiter] = {}


def get_rate_limiter(max_rate: int) -> AsyncLimiter:
    """Get the process-wide limiter for an hourly request budget."""
    limiter = _rate_limiters.get(max_rate)
    if limiter is None:
        limiter = AsyncLimiter(max_rate=max_rate, time_period=3600)
        _rate_limiters[max_rate] = limiter
    return limiter


class GitHubAPIError(Exception):
    """Custom exception for GitHub API errors."""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class GitHubRateLimitError(GitHubAPIError):
    """Exception raised when GitHub rate limit is exceeded."""
    pass


def parse_error_message(response: httpx.Response) -> str:
    """
    Build a readable message from a GitHub error response.

    Errors come as ``{message}`` optionally followed by
    ``errors: [{code, resource, field, message?}, ...]``, e.g.::

        {"message": "Validation Failed",
         "errors": [{"code": "custom", "resource": "CommitComment",
                     "field": "body", "message": "body is too long"}]}
    """
    fallback = f"GitHub API error: {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return fallback

    if not isinstance(payload, dict):
        return fallback

    message = payload.get("message")
    details = []
    for err in payload.get("errors") or []:
        if not isinstance(err, dict):
            details.append(str(err))
        elif err.get("code") == "custom":
            details.append(f"{err.get('resource')}.{err.get('field')}: {err.get('message')}")
        else:
            details.append(f"{err.get('code')}: {err.get('resource')}.{err.get('field')}")
    detail = "\n".join(details)

    if message and detail:
        return f"{message}\n{detail}"
    return message or detail or fallback


def _require(**values: Any) -> None:
    for name, value in values.items():
        if not value:
            raise ValueError(f"{name} is required")


class GitHubClient:
    """
    Async GitHub API client with authentication and rate limiting.

    Usage:
        client = GitHubClient(installation_id=123)
        files = await client.compare("owner/repo", base_sha, head_sha)
    """

    def __init__(
        self,
        installation_id: Optional[int] = None,
        auth: Optional[GitHubAuth] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the GitHub client.

        Args:
            installation_id: GitHub App installation ID (App mode only)
            auth: Authorization provider, defaults to the shared instance
            settings: Settings, defaults to the cached instance
            transport: Optional httpx transport, mainly for tests
        """
        self.installation_id = installation_id
        self.settings = settings or get_settings()
        self.auth = auth or get_github_auth()
        self._transport = transport

        self._rate_limiter = get_rate_limiter(self.settings.github_rate_limit)

    async def _get_headers(self, accept: str = JSON_MEDIA_TYPE) -> Dict[str, str]:
        """Get authenticated headers for API requests."""
        authorization = await self.auth.get_authorization(self.installation_id)
        return {
            "Authorization": authorization,
            "Accept": accept,
            "X-GitHub-Api-Version": API_VERSION,
        }

    async def _handle_rate_limit(self, response: httpx.Response) -> None:
        """
        Handle rate limit headers from GitHub response.

        Logs a warning when the budget runs low and waits for the reset
        once it is exhausted.
        """
        remaining = response.headers.get("x-ratelimit-remaining")
        reset_time = response.headers.get("x-ratelimit-reset")

        if not remaining:
            return

        remaining_int = int(remaining)
        if remaining_int < 100:
            logger.warning(
                "GitHub API rate limit running low",
                remaining=remaining_int,
                reset_at=reset_time
            )

        if remaining_int == 0 and reset_time and response.status_code in (403, 429):
            sleep_time = max(0, int(reset_time) - int(time.time())) + 5
            logger.warning(
                "Rate limit exceeded, waiting for reset",
                sleep_seconds=sleep_time
            )
            await asyncio.sleep(sleep_time)
            raise GitHubRateLimitError("Rate limit exceeded", status_code=response.status_code)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((httpx.TransportError, GitHubRateLimitError)),
        reraise=True
    )
    async def _request(
        self,
        method: str,
        endpoint: str,
        accept: str = JSON_MEDIA_TYPE,
        **kwargs
    ) -> httpx.Response:
        """
        Make an authenticated request to the GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            accept: Media type for the Accept header
            **kwargs: Additional arguments to pass to httpx

        Returns:
            httpx.Response object

        Raises:
            GitHubAPIError: If GitHub answers with an error status
            GitHubAuthError: If the credentials are rejected
        """
        async with self._rate_limiter:
            headers = await self._get_headers(accept)
            url = f"{self.settings.github_api_url}{endpoint}"

            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)

            await self._handle_rate_limit(response)

            if response.status_code == 401:
                # Token might be invalidated, clear cache
                self.auth.invalidate_token(self.installation_id)
                raise GitHubAuthError("Authentication failed, token invalidated")

            if response.status_code >= 400:
                message = parse_error_message(response)
                logger.error(
                    "GitHub API error",
                    status_code=response.status_code,
                    endpoint=endpoint,
                    error=message[:500]
                )
                raise GitHubAPIError(
                    message,
                    status_code=response.status_code,
                    response_body=response.text
                )

            return response

    async def compare(self, repo: str, base: str, head: str) -> List[CompareFile]:
        """
        List the files changed between two commits.

        Args:
            repo: Full repository name, e.g. "octo/app"
            base: Base commit ref/tag/sha
            head: Head commit ref/tag/sha

        Returns:
            Changed files in the order GitHub reports them
        """
        _require(repo=repo, base=base, head=head)

        response = await self._request("GET", f"/repos/{repo}/compare/{base}...{head}")
        files = [CompareFile(**file_data) for file_data in response.json().get("files") or []]

        logger.info(
            "Compared commits",
            repo=repo,
            base=base,
            head=head,
            num_files=len(files)
        )

        return files

    async def get_blob(self, repo: str, path: str, ref: Optional[str] = None) -> bytes:
        """
        Fetch raw file content.

        Args:
            repo: Full repository name
            path: File path inside the repository
            ref: Commit ref/tag/sha, defaults to the default branch

        Returns:
            Raw file bytes
        """
        _require(repo=repo, path=path)

        params = {"ref": ref} if ref else None
        response = await self._request(
            "GET",
            f"/repos/{repo}/contents/{quote(path, safe='/')}",
            accept=RAW_MEDIA_TYPE,
            params=params
        )

        logger.debug("Fetched blob", repo=repo, path=path, ref=ref, size=len(response.content))
        return response.content

    async def create_commit_comment(
        self,
        repo: str,
        sha: str,
        body: str,
        path: Optional[str] = None,
        position: Optional[int] = None
    ) -> CommitComment:
        """
        Comment on a commit.

        Args:
            repo: Full repository name
            sha: SHA of the commit to comment on
            body: Markdown comment body
            path: File to attach the comment to (optional)
            position: Line index in the diff (optional, needs path)

        Returns:
            The created comment
        """
        _require(repo=repo, sha=sha, body=body)

        payload: Dict[str, Any] = {"body": body}
        if path is not None:
            payload["path"] = path
        if position is not None:
            payload["position"] = position

        response = await self._request("POST", f"/repos/{repo}/commits/{sha}/comments", json=payload)
        comment = CommitComment(**response.json())

        logger.info(
            "Posted commit comment",
            repo=repo,
            sha=sha,
            comment_id=comment.id
        )

        return comment
