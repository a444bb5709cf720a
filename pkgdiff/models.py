"""
Data Models Module

This module defines all Pydantic models used throughout the application.
Strong typing ensures data integrity and provides clear contracts between components.

Design Decisions:
- Use Pydantic models for all data transfer objects
- Webhook models accept unknown fields, since GitHub payloads are large
- Diff results are frozen: each value is built once and consumed once
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class FileStatus(str, Enum):
    """Per-file status reported by the compare API."""
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ChangeType(str, Enum):
    """Kinds of dependency change."""
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class ResultStatus(str, Enum):
    """Outcome of handling one pull request event."""
    NO_CHANGES = "no_changes"
    DRY_RUN = "dry_run"
    COMMENTED = "commented"


# =============================================================================
# GitHub Webhook Models
# =============================================================================

class GitHubUser(BaseModel):
    """GitHub user information."""
    login: str
    id: int
    type: str = "User"


class GitHubRepository(BaseModel):
    """GitHub repository information."""
    id: int
    name: str
    full_name: str
    private: bool = False
    owner: GitHubUser
    html_url: Optional[str] = None
    default_branch: str = "main"


class GitHubPullRequestRef(BaseModel):
    """One side (base or head) of a pull request."""
    ref: str
    sha: str
    repo: Optional[GitHubRepository] = None


class GitHubPullRequest(BaseModel):
    """Pull request information from webhook."""
    id: int
    number: int
    state: str = "open"
    title: str = ""
    user: Optional[GitHubUser] = None
    html_url: Optional[str] = None
    head: GitHubPullRequestRef
    base: GitHubPullRequestRef
    draft: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GitHubInstallation(BaseModel):
    """GitHub App installation information."""
    id: int
    account: Optional[GitHubUser] = None


class PullRequestWebhookPayload(BaseModel):
    """Pull request webhook payload (fields this service reads)."""
    action: str
    number: int
    pull_request: GitHubPullRequest
    repository: GitHubRepository
    sender: Optional[GitHubUser] = None
    # Absent when the webhook is configured on the repository directly
    installation: Optional[GitHubInstallation] = None


# =============================================================================
# GitHub REST Models
# =============================================================================

class CompareFile(BaseModel):
    """
    A file entry from the compare API.

    Attributes:
        filename: Path to the file in the repository
        status: Change status (added, removed, modified, renamed, ...)
        sha: Blob SHA of the file
        additions: Number of added lines
        deletions: Number of deleted lines
        previous_filename: Old path for renamed files
    """
    filename: str
    status: str
    sha: Optional[str] = None
    additions: int = 0
    deletions: int = 0
    previous_filename: Optional[str] = None


class CommitComment(BaseModel):
    """A commit comment as returned by the GitHub API."""
    id: int
    body: str
    html_url: Optional[str] = None
    commit_id: Optional[str] = None
    path: Optional[str] = None
    position: Optional[int] = None
    created_at: Optional[datetime] = None


# =============================================================================
# Dependency Diff Models
# =============================================================================

class DependencyChange(BaseModel):
    """
    One dependency that differs between two manifests.

    The kind of change is carried only by which ranges are present:
    added has just ``current``, removed has just ``previous``,
    changed has both.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    previous: Optional[str] = None
    current: Optional[str] = None

    @classmethod
    def added(cls, name: str, current: str) -> "DependencyChange":
        return cls(name=name, current=current)

    @classmethod
    def removed(cls, name: str, previous: str) -> "DependencyChange":
        return cls(name=name, previous=previous)

    @classmethod
    def changed(cls, name: str, previous: str, current: str) -> "DependencyChange":
        return cls(name=name, previous=previous, current=current)

    @property
    def change_type(self) -> Optional[ChangeType]:
        """Derive the kind of change from the ranges that are present."""
        if self.previous is None and self.current is not None:
            return ChangeType.ADDED
        if self.previous is not None and self.current is None:
            return ChangeType.REMOVED
        if self.previous is not None and self.current is not None:
            return ChangeType.CHANGED
        return None


class FileDiff(BaseModel):
    """Dependency changes found in a single package.json."""
    model_config = ConfigDict(frozen=True)

    name: str
    dependencies: List[DependencyChange] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.dependencies)


# =============================================================================
# Internal Processing Models
# =============================================================================

class PRContext(BaseModel):
    """
    Everything the processor needs to handle one pull request event.

    Built by the webhook handler from the payload and query string.
    """
    base_repo: str
    head_repo: str
    base_sha: str
    head_sha: str
    pr_number: int
    installation_id: Optional[int] = None
    dry_run: bool = False

    @classmethod
    def from_payload(
        cls,
        payload: PullRequestWebhookPayload,
        dry_run: bool = False
    ) -> "PRContext":
        """Build a context, falling back to the event repository for missing repos."""
        pr = payload.pull_request
        base_repo = pr.base.repo.full_name if pr.base.repo else payload.repository.full_name
        # The head repo is None when a fork has been deleted
        head_repo = pr.head.repo.full_name if pr.head.repo else base_repo

        return cls(
            base_repo=base_repo,
            head_repo=head_repo,
            base_sha=pr.base.sha,
            head_sha=pr.head.sha,
            pr_number=payload.number,
            installation_id=payload.installation.id if payload.installation else None,
            dry_run=dry_run
        )


class ProcessingResult(BaseModel):
    """Outcome returned to the webhook caller."""
    status: ResultStatus
    message: Optional[str] = None
    comment: Optional[CommitComment] = None
    files: List[FileDiff] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Render the JSON body returned by the webhook endpoint."""
        response: Dict[str, Any] = {"status": self.status.value}
        if self.status is ResultStatus.COMMENTED and self.comment is not None:
            response["comment"] = self.comment.model_dump(
                mode="json",
                include={"id", "html_url", "body"}
            )
        else:
            response["message"] = self.message
        return response
