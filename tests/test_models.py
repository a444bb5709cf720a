"""
Tests for Data Models

Tests for the Pydantic models used in the application.
"""

import pytest
from pydantic import ValidationError

from pkgdiff.models import (
    ChangeType,
    CommitComment,
    CompareFile,
    DependencyChange,
    FileDiff,
    PRContext,
    ProcessingResult,
    PullRequestWebhookPayload,
    ResultStatus,
)


class TestDependencyChange:
    """Tests for DependencyChange."""

    def test_added(self):
        change = DependencyChange.added("bluebird", "2.0.0")

        assert change.previous is None
        assert change.current == "2.0.0"
        assert change.change_type == ChangeType.ADDED

    def test_removed(self):
        change = DependencyChange.removed("browserify", "^1.0.0")

        assert change.current is None
        assert change.change_type == ChangeType.REMOVED

    def test_changed(self):
        change = DependencyChange.changed("honeybee", "^1.0.0", "^2.0.0")

        assert change.change_type == ChangeType.CHANGED

    def test_change_type_derived_from_fields(self):
        """The kind comes from which ranges are present, not from a tag."""
        change = DependencyChange(name="a", previous="1", current="2")

        assert change.change_type == ChangeType.CHANGED
        assert DependencyChange(name="a").change_type is None

    def test_frozen(self):
        change = DependencyChange.added("a", "1")

        with pytest.raises(ValidationError):
            change.current = "2"

    def test_equality(self):
        assert DependencyChange.added("a", "1") == DependencyChange(name="a", current="1")


class TestFileDiff:
    """Tests for FileDiff."""

    def test_has_changes(self):
        assert not FileDiff(name="package.json").has_changes
        assert FileDiff(
            name="package.json",
            dependencies=[DependencyChange.added("a", "1")]
        ).has_changes


class TestGitHubModels:
    """Tests for GitHub-related models."""

    def test_compare_file_extra_fields(self):
        """Unknown compare API fields are ignored."""
        file = CompareFile(
            filename="package.json",
            status="modified",
            sha="abc",
            patch="@@ -1 +1 @@",
            blob_url="https://github.com/..."
        )

        assert file.filename == "package.json"
        assert file.additions == 0

    def test_payload_without_installation(self, sample_pr_payload):
        del sample_pr_payload["installation"]

        payload = PullRequestWebhookPayload(**sample_pr_payload)

        assert payload.installation is None
        assert PRContext.from_payload(payload).installation_id is None

    def test_payload_requires_shas(self, sample_pr_payload):
        del sample_pr_payload["pull_request"]["head"]["sha"]

        with pytest.raises(ValidationError):
            PullRequestWebhookPayload(**sample_pr_payload)


class TestPRContext:
    """Tests for PRContext."""

    def test_from_payload(self, sample_pr_payload):
        payload = PullRequestWebhookPayload(**sample_pr_payload)

        context = PRContext.from_payload(payload, dry_run=True)

        assert context.base_repo == "owner/repo"
        assert context.head_repo == "contributor/repo"
        assert context.base_sha == sample_pr_payload["pull_request"]["base"]["sha"]
        assert context.head_sha == sample_pr_payload["pull_request"]["head"]["sha"]
        assert context.pr_number == 42
        assert context.dry_run is True

    def test_missing_base_repo_uses_event_repository(self, sample_pr_payload):
        sample_pr_payload["pull_request"]["base"]["repo"] = None
        sample_pr_payload["pull_request"]["head"]["repo"] = None

        context = PRContext.from_payload(PullRequestWebhookPayload(**sample_pr_payload))

        assert context.base_repo == "owner/repo"
        assert context.head_repo == "owner/repo"


class TestProcessingResult:
    """Tests for ProcessingResult responses."""

    def test_message_response(self):
        result = ProcessingResult(status=ResultStatus.NO_CHANGES, message="no dependencies changed")

        assert result.to_response() == {
            "status": "no_changes",
            "message": "no dependencies changed"
        }

    def test_comment_response(self):
        result = ProcessingResult(
            status=ResultStatus.COMMENTED,
            message="body",
            comment=CommitComment(id=1, body="body", html_url="https://example.test/c/1")
        )

        assert result.to_response() == {
            "status": "commented",
            "comment": {"id": 1, "body": "body", "html_url": "https://example.test/c/1"}
        }
