"""
Tests for Logging Configuration

Tests the structlog processors.
"""

from pkgdiff import __version__
from pkgdiff.logging_config import add_app_context, filter_sensitive_data


class TestFilterSensitiveData:
    """Test suite for the redaction processor."""

    def test_sensitive_keys_redacted(self):
        event = filter_sensitive_data(None, "info", {
            "event": "Request",
            "authorization": "Basic abc",
            "github_token": "xyz",
            "repo": "owner/repo"
        })

        assert event["authorization"] == "[REDACTED]"
        assert event["github_token"] == "[REDACTED]"
        assert event["repo"] == "owner/repo"

    def test_token_like_values_redacted(self):
        event = filter_sensitive_data(None, "info", {
            "event": "Debug",
            "value": "ghp_" + "a" * 36,
            "short": "ghp_abc"
        })

        assert event["value"] == "[REDACTED]"
        assert event["short"] == "ghp_abc"

    def test_nested_dicts(self):
        event = filter_sensitive_data(None, "info", {
            "event": "Headers",
            "headers": {"Accept": "application/json", "Authorization": "token x"}
        })

        assert event["headers"] == {"Accept": "application/json", "Authorization": "[REDACTED]"}


def test_app_context():
    event = add_app_context(None, "info", {"event": "x"})

    assert event["app"] == "pkgdiff"
    assert event["version"] == __version__
