"""
Dependency Diff Processor Module

This module orchestrates handling of one pull request event.
It coordinates fetching the changed files, reading both versions of every
candidate package.json, diffing them, and posting the report.

Design Decisions:
- All awaiting happens here; diffing and formatting are pure functions
- Old and new blobs are fetched concurrently, results keep file order
- Collaborator errors are logged and re-raised unchanged
- Support dry-run mode for testing
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

from pkgdiff.config import Settings, get_settings
from pkgdiff.logging_config import get_logger
from pkgdiff.models import CompareFile, FileDiff, PRContext, ProcessingResult, ResultStatus
from pkgdiff.services.dependency_diff import (
    ManifestParseError,
    build_file_diff,
    has_dependency_changes,
    parse_manifest,
    select_candidate_files,
)
from pkgdiff.services.github_client import GitHubClient
from pkgdiff.services.report_formatter import format_report

logger = get_logger(__name__)

NO_CHANGES_MESSAGE = "no dependencies changed"


class DependencyDiffProcessor:
    """
    Runs the dependency diff pipeline for one pull request.

    Usage:
        processor = DependencyDiffProcessor(pr_context)
        result = await processor.process()
    """

    def __init__(
        self,
        pr_context: PRContext,
        github_client: Optional[GitHubClient] = None,
        settings: Optional[Settings] = None
    ):
        self.pr_context = pr_context
        self.settings = settings or get_settings()
        self.github_client = github_client or GitHubClient(pr_context.installation_id)

    @property
    def dry_run(self) -> bool:
        return self.pr_context.dry_run or not self.settings.enable_github_comments

    async def process(self) -> ProcessingResult:
        """
        Execute the pipeline.

        Returns:
            ProcessingResult describing what happened

        Raises:
            ManifestParseError: If a fetched manifest is not valid JSON
            GitHubAPIError: If a GitHub request fails
        """
        ctx = self.pr_context
        logger.info(
            "Starting dependency diff",
            repo=ctx.base_repo,
            pr_number=ctx.pr_number,
            base_sha=ctx.base_sha,
            head_sha=ctx.head_sha,
            dry_run=self.dry_run
        )

        try:
            files = await self._fetch_candidate_files()
            if not files:
                logger.info("No modified package.json files")
                return self._no_changes()

            file_diffs = await self._diff_files(files)
            if not has_dependency_changes(file_diffs):
                logger.info(
                    "No dependency changes to report",
                    files=[f.name for f in file_diffs if not f.has_changes]
                )
                return self._no_changes(file_diffs)

            body = format_report(file_diffs, ctx.base_sha, ctx.head_sha)

            if self.dry_run:
                logger.info("Dry run, comment not posted", num_files=len(file_diffs))
                return ProcessingResult(status=ResultStatus.DRY_RUN, message=body, files=file_diffs)

            comment = await self.github_client.create_commit_comment(
                repo=ctx.base_repo,
                sha=ctx.head_sha,
                body=body
            )

        except ManifestParseError as e:
            logger.error("Invalid package.json", path=e.path, error=e.reason)
            raise
        except Exception as e:
            logger.error(
                "Dependency diff failed",
                repo=ctx.base_repo,
                pr_number=ctx.pr_number,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        logger.info(
            "Dependency diff completed",
            repo=ctx.base_repo,
            pr_number=ctx.pr_number,
            num_files=len(file_diffs),
            num_changes=sum(len(f.dependencies) for f in file_diffs),
            comment_id=comment.id
        )

        return ProcessingResult(
            status=ResultStatus.COMMENTED,
            message=body,
            comment=comment,
            files=file_diffs
        )

    def _no_changes(self, file_diffs: Sequence[FileDiff] = ()) -> ProcessingResult:
        return ProcessingResult(
            status=ResultStatus.NO_CHANGES,
            message=NO_CHANGES_MESSAGE,
            files=list(file_diffs)
        )

    async def _fetch_candidate_files(self) -> List[CompareFile]:
        """Compare base and head, keeping modified package.json files."""
        ctx = self.pr_context
        changed = await self.github_client.compare(ctx.base_repo, ctx.base_sha, ctx.head_sha)
        candidates = select_candidate_files(changed)

        logger.debug(
            "Selected candidate manifests",
            num_changed=len(changed),
            candidates=[f.filename for f in candidates]
        )

        return candidates

    async def _fetch_blobs(self, files: Sequence[CompareFile], ref: str) -> List[bytes]:
        return await asyncio.gather(*(
            self.github_client.get_blob(self.pr_context.head_repo, file.filename, ref)
            for file in files
        ))

    async def _fetch_manifest_contents(
        self,
        files: Sequence[CompareFile]
    ) -> Tuple[List[bytes], List[bytes]]:
        """Fetch (old, new) contents for every file; gather keeps input order."""
        ctx = self.pr_context
        old_blobs, new_blobs = await asyncio.gather(
            self._fetch_blobs(files, ctx.base_sha),
            self._fetch_blobs(files, ctx.head_sha)
        )
        return old_blobs, new_blobs

    async def _diff_files(self, files: Sequence[CompareFile]) -> List[FileDiff]:
        old_blobs, new_blobs = await self._fetch_manifest_contents(files)
        sections = self.settings.dependency_sections_tuple

        file_diffs = []
        for file, old_blob, new_blob in zip(files, old_blobs, new_blobs):
            original = parse_manifest(old_blob, f"{file.filename}@{self.pr_context.base_sha}")
            current = parse_manifest(new_blob, f"{file.filename}@{self.pr_context.head_sha}")
            file_diffs.append(build_file_diff(file.filename, original, current, sections))

        return file_diffs


async def process_pull_request(
    pr_context: PRContext,
    github_client: Optional[GitHubClient] = None
) -> ProcessingResult:
    """
    Convenience function to process one pull request event.

    Args:
        pr_context: Complete PR context
        github_client: Optional client override

    Returns:
        ProcessingResult
    """
    processor = DependencyDiffProcessor(pr_context, github_client=github_client)
    return await processor.process()
