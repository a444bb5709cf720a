"""
Services Package

This package contains all service modules for the dependency diff bot:
- dependency_diff: package.json dependency comparison
- report_formatter: Markdown comment rendering
- github_auth: GitHub authentication
- github_client: GitHub API client
"""

from pkgdiff.services.dependency_diff import (
    DEPENDENCY_SECTIONS,
    ManifestParseError,
    diff_manifest,
    diff_section,
    parse_manifest,
    select_candidate_files,
)
from pkgdiff.services.github_auth import get_github_auth, GitHubAuth, GitHubAuthError
from pkgdiff.services.github_client import GitHubClient, GitHubAPIError, GitHubRateLimitError
from pkgdiff.services.report_formatter import format_report


__all__ = [
    "DEPENDENCY_SECTIONS",
    "ManifestParseError",
    "diff_manifest",
    "diff_section",
    "parse_manifest",
    "select_candidate_files",
    "format_report",
    "get_github_auth",
    "GitHubAuth",
    "GitHubAuthError",
    "GitHubClient",
    "GitHubAPIError",
    "GitHubRateLimitError",
]
