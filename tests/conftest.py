"""
Test Configuration

Pytest configuration and fixtures for the test suite.
"""

import os

# Settings are read from the environment on first use, before the app import
os.environ.setdefault("GITHUB_WEBHOOK_SECRET", "test_secret")
os.environ.setdefault("GITHUB_TOKEN", "test-token")
os.environ.setdefault("LOG_JSON_FORMAT", "false")

import json
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from pkgdiff.main import app
from pkgdiff.models import CommitComment, CompareFile
from pkgdiff.webhook.security import compute_signature


WEBHOOK_SECRET = os.environ["GITHUB_WEBHOOK_SECRET"]
BASE_SHA = "xyz789abc012"
HEAD_SHA = "abc123def456"


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient used by processor tests."""

    def __init__(
        self,
        files: List[CompareFile],
        blobs: Dict[tuple, bytes],
        comment_error: Optional[Exception] = None
    ):
        self.files = files
        self.blobs = blobs
        self.comment_error = comment_error
        self.compare_calls: List[tuple] = []
        self.blob_calls: List[tuple] = []
        self.comments: List[dict] = []

    async def compare(self, repo, base, head):
        self.compare_calls.append((repo, base, head))
        return self.files

    async def get_blob(self, repo, path, ref=None):
        self.blob_calls.append((repo, path, ref))
        return self.blobs[(path, ref)]

    async def create_commit_comment(self, repo, sha, body, path=None, position=None):
        if self.comment_error is not None:
            raise self.comment_error
        self.comments.append({"repo": repo, "sha": sha, "body": body})
        return CommitComment(
            id=len(self.comments),
            body=body,
            html_url=f"https://github.com/{repo}/commit/{sha}#commitcomment-{len(self.comments)}",
            commit_id=sha
        )


def manifest_bytes(**sections) -> bytes:
    """Serialize a package.json with the given sections."""
    manifest = {"name": "demo", "version": "1.0.0"}
    manifest.update(sections)
    return json.dumps(manifest).encode()


def sign(body: bytes) -> str:
    return compute_signature(WEBHOOK_SECRET, body, "sha256")


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for synchronous tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_pr_payload() -> dict:
    """Sample pull request webhook payload."""
    repository = {
        "id": 111,
        "name": "repo",
        "full_name": "owner/repo",
        "private": False,
        "owner": {
            "login": "owner",
            "id": 1,
            "type": "User"
        },
        "html_url": "https://github.com/owner/repo",
        "default_branch": "main"
    }
    fork = dict(repository, id=222, full_name="contributor/repo",
                owner={"login": "contributor", "id": 2, "type": "User"})
    return {
        "action": "opened",
        "number": 42,
        "pull_request": {
            "id": 123456789,
            "number": 42,
            "state": "open",
            "title": "Bump dependencies",
            "user": {
                "login": "contributor",
                "id": 2,
                "type": "User"
            },
            "html_url": "https://github.com/owner/repo/pull/42",
            "head": {
                "ref": "bump-deps",
                "sha": HEAD_SHA,
                "repo": fork
            },
            "base": {
                "ref": "main",
                "sha": BASE_SHA,
                "repo": repository
            },
            "draft": False,
            "created_at": "2024-01-15T10:00:00Z",
            "updated_at": "2024-01-15T10:00:00Z"
        },
        "repository": repository,
        "sender": {
            "login": "contributor",
            "id": 2,
            "type": "User"
        },
        "installation": {
            "id": 987654
        }
    }


@pytest.fixture
def original_manifest() -> dict:
    return {
        "name": "demo",
        "dependencies": {"honeybee": "^1.0.0", "browserify": "^1.0.0"},
        "devDependencies": {"mocha": "^3.0.0"}
    }


@pytest.fixture
def current_manifest() -> dict:
    return {
        "name": "demo",
        "dependencies": {"honeybee": "^2.0.0", "bluebird": "2.0.0"},
        "devDependencies": {"mocha": "^3.0.0"}
    }


@pytest.fixture
def fake_github_client():
    """Factory fixture returning the FakeGitHubClient class."""
    return FakeGitHubClient


@pytest.fixture
def build_manifest():
    return manifest_bytes


@pytest.fixture
def signer():
    return sign
