"""
Tests for GitHub Authentication

Token mode headers and App installation token caching.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pkgdiff.config import Settings
from pkgdiff.services.github_auth import CachedToken, GitHubAuth, GitHubAuthError


def _app_settings() -> Settings:
    return Settings(github_webhook_secret="s", github_token="", github_app_id="1234")


class TestCachedToken:
    """Tests for CachedToken expiry."""

    def test_fresh_token(self):
        token = CachedToken("t", datetime.now(timezone.utc) + timedelta(hours=1))

        assert not token.is_expired

    def test_token_about_to_expire(self):
        token = CachedToken("t", datetime.now(timezone.utc) + timedelta(minutes=2))

        assert token.is_expired


class TestGitHubAuth:
    """Test suite for GitHubAuth."""

    @pytest.mark.asyncio
    async def test_personal_token(self):
        auth = GitHubAuth(Settings(github_webhook_secret="s", github_token="pat"))

        assert await auth.get_authorization(None) == "token pat"

    @pytest.mark.asyncio
    async def test_app_mode_requires_installation(self):
        auth = GitHubAuth(_app_settings())

        with pytest.raises(GitHubAuthError):
            await auth.get_authorization(None)

    def test_jwt_without_private_key(self):
        auth = GitHubAuth(_app_settings())

        with pytest.raises(GitHubAuthError):
            auth.generate_jwt()

    @pytest.mark.asyncio
    async def test_installation_token_cached(self, monkeypatch):
        auth = GitHubAuth(_app_settings())
        fetched = []

        async def fake_fetch(installation_id):
            fetched.append(installation_id)
            return CachedToken(f"ghs_{len(fetched)}", datetime.now(timezone.utc) + timedelta(hours=1))

        monkeypatch.setattr(auth, "_fetch_installation_token", fake_fetch)

        assert await auth.get_authorization(7) == "token ghs_1"
        assert await auth.get_authorization(7) == "token ghs_1"
        assert fetched == [7]

        auth.invalidate_token(7)

        assert await auth.get_authorization(7) == "token ghs_2"
        assert fetched == [7, 7]
