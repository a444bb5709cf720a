"""
GitHub Authentication Service

This module produces the Authorization header for GitHub API requests.
Two modes are supported:
- Personal access token, sent as Basic auth when GITHUB_USER is set and
  as ``token <pat>`` otherwise
- GitHub App, exchanging a signed JWT for an installation access token

Design Decisions:
- A personal token wins when both modes are configured
- Use RS256 algorithm for JWT signing (GitHub requirement)
- Cache installation tokens and refresh them shortly before they expire
"""

import base64
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import httpx
import jwt
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pkgdiff.config import Settings, get_settings
from pkgdiff.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class CachedToken:
    """Cached installation access token with expiration."""
    token: str
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        """Check if token is expired or will expire within 5 minutes."""
        buffer = timedelta(minutes=5)
        return datetime.now(timezone.utc) >= (self.expires_at - buffer)


class GitHubAuthError(Exception):
    """Custom exception for GitHub authentication errors."""
    pass


class GitHubAuth:
    """
    Authorization header provider.

    Usage:
        auth = GitHubAuth()
        header = await auth.get_authorization(installation_id)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._private_key: Optional[str] = None
        # Cache tokens by installation_id
        self._token_cache: Dict[int, CachedToken] = {}

    @property
    def private_key(self) -> str:
        """Lazy load and cache the private key."""
        if self._private_key is None:
            try:
                self._private_key = self.settings.get_private_key()
            except ValueError as e:
                raise GitHubAuthError(str(e)) from e
            logger.debug("Loaded GitHub App private key")
        return self._private_key

    def _basic_or_token_header(self) -> str:
        token = self.settings.github_token
        if self.settings.github_user:
            credentials = f"{self.settings.github_user}:{token}".encode()
            return "Basic " + base64.b64encode(credentials).decode("ascii")
        return f"token {token}"

    async def get_authorization(self, installation_id: Optional[int] = None) -> str:
        """
        Get the Authorization header value for an API request.

        Args:
            installation_id: GitHub App installation ID, ignored in token mode

        Returns:
            Header value

        Raises:
            GitHubAuthError: If no usable credentials are available
        """
        if self.settings.uses_personal_token:
            return self._basic_or_token_header()

        if installation_id is None:
            raise GitHubAuthError(
                "Webhook payload has no installation and GITHUB_TOKEN is not set"
            )

        token = await self.get_installation_token(installation_id)
        return f"token {token}"

    def generate_jwt(self) -> str:
        """
        Generate a JWT for GitHub App authentication.

        Returns:
            Signed JWT string

        Raises:
            GitHubAuthError: If JWT generation fails
        """
        if not self.settings.github_app_id:
            raise GitHubAuthError("GITHUB_APP_ID is not configured")

        now = int(time.time())
        payload = {
            # 60 seconds in the past for clock drift
            "iat": now - 60,
            "exp": now + (9 * 60),
            "iss": self.settings.github_app_id,
        }

        try:
            token = jwt.encode(payload, self.private_key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.error("Failed to generate JWT", error=str(e))
            raise GitHubAuthError(f"Failed to generate JWT: {e}") from e

        logger.debug("Generated GitHub App JWT", app_id=self.settings.github_app_id)
        return token

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True
    )
    async def _fetch_installation_token(self, installation_id: int) -> CachedToken:
        """
        Exchange the App JWT for an installation access token.

        Raises:
            GitHubAuthError: If GitHub rejects the exchange
        """
        jwt_token = self.generate_jwt()

        url = f"{self.settings.github_api_url}/app/installations/{installation_id}/access_tokens"

        headers = {
            "Authorization": f"Bearer {jwt_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(url, headers=headers)

        if response.status_code >= 400:
            logger.error(
                "Failed to get installation token",
                installation_id=installation_id,
                status_code=response.status_code,
                error=response.text[:500]
            )
            raise GitHubAuthError(
                f"Failed to get installation token: {response.status_code} - {response.text}"
            )

        data = response.json()
        expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))

        logger.info(
            "Obtained installation access token",
            installation_id=installation_id,
            expires_at=expires_at.isoformat()
        )

        return CachedToken(token=data["token"], expires_at=expires_at)

    async def get_installation_token(self, installation_id: int) -> str:
        """
        Get an installation access token, using cache when possible.

        Raises:
            GitHubAuthError: If authentication fails
        """
        cached = self._token_cache.get(installation_id)

        if cached and not cached.is_expired:
            return cached.token

        logger.debug(
            "Fetching new installation token",
            installation_id=installation_id,
            reason="expired" if cached else "not_cached"
        )

        new_token = await self._fetch_installation_token(installation_id)
        self._token_cache[installation_id] = new_token

        return new_token.token

    def invalidate_token(self, installation_id: Optional[int]) -> None:
        """
        Drop a cached installation token.

        Called after a 401, which means the token may have been revoked.
        """
        if installation_id in self._token_cache:
            del self._token_cache[installation_id]
            logger.info("Invalidated cached token", installation_id=installation_id)


# Singleton instance for the application
_auth_instance: Optional[GitHubAuth] = None


def get_github_auth() -> GitHubAuth:
    """
    Get the singleton GitHubAuth instance.

    Returns:
        GitHubAuth instance
    """
    global _auth_instance
    if _auth_instance is None:
        _auth_instance = GitHubAuth()
    return _auth_instance
