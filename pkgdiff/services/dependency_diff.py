"""
Dependency Diff Module

This module compares the dependency sections of two package.json manifests.

Design Decisions:
- Pure functions only: no I/O, no logging, no shared state
- Version ranges are opaque strings compared exactly (no semver logic)
- A section missing from either manifest yields None rather than an empty
  list, so "section untouched" stays distinct from "section emptied"
- Key order follows each manifest's own order (json.loads keeps it)
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pkgdiff.models import CompareFile, DependencyChange, FileDiff, FileStatus


# Canonical report order
DEPENDENCY_SECTIONS = (
    "bundledDependencies",
    "dependencies",
    "devDependencies",
    "optionalDependencies",
    "peerDependencies",
)

MANIFEST_FILENAME = "package.json"

# package.json at any depth, nothing before or after the basename
MANIFEST_PATH_PATTERN = re.compile(r"(?:.*/)?package\.json")

# Range given to names listed in the array form of bundledDependencies
BUNDLED_RANGE = "*"

Manifest = Dict[str, Any]


class ManifestParseError(ValueError):
    """Raised when fetched manifest content is not a JSON object."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason


def parse_manifest(content: Union[bytes, str], path: str) -> Manifest:
    """
    Parse raw package.json content.

    Args:
        content: Raw blob content
        path: File path, used in error messages

    Returns:
        The manifest as a dict

    Raises:
        ManifestParseError: If the content is not valid JSON or not an object
    """
    try:
        manifest = json.loads(content)
    except (ValueError, UnicodeDecodeError) as e:
        # json.JSONDecodeError is a ValueError
        raise ManifestParseError(path, str(e)) from e

    if not isinstance(manifest, dict):
        raise ManifestParseError(
            path, f"expected a JSON object, got {type(manifest).__name__}"
        )

    return manifest


def _range_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _same_range(old: Any, new: Any) -> bool:
    """Exact comparison where booleans never equal numbers (1 vs true)."""
    return (isinstance(old, bool), old) == (isinstance(new, bool), new)


def _as_mapping(section: Any) -> Optional[Mapping[str, Any]]:
    """Normalize a section value, returning None for unusable shapes."""
    if isinstance(section, dict):
        # A null range is the same as no entry
        return {name: value for name, value in section.items() if value is not None}
    if isinstance(section, list):
        return {str(name): BUNDLED_RANGE for name in section}
    return None


def diff_section(
    original: Optional[Any],
    current: Optional[Any]
) -> Optional[List[DependencyChange]]:
    """
    Diff one dependency section.

    Args:
        original: Section from the base manifest, or None if missing
        current: Section from the head manifest, or None if missing

    Returns:
        Added, then removed, then changed records; None when the
        section is missing from either manifest
    """
    if original is None or current is None:
        return None

    original = _as_mapping(original)
    current = _as_mapping(current)
    if original is None or current is None:
        return None

    added = [
        DependencyChange.added(name, _range_text(current[name]))
        for name in current
        if name not in original
    ]
    removed = [
        DependencyChange.removed(name, _range_text(original[name]))
        for name in original
        if name not in current
    ]
    changed = [
        DependencyChange.changed(
            name, _range_text(original[name]), _range_text(current[name])
        )
        for name in original
        if name in current and not _same_range(original[name], current[name])
    ]

    return added + removed + changed


def diff_manifest(
    original: Manifest,
    current: Manifest,
    sections: Sequence[str] = DEPENDENCY_SECTIONS
) -> List[DependencyChange]:
    """
    Diff every recognized dependency section of two manifests.

    Sections are visited in the given order; sections that are missing
    from either side contribute nothing.
    """
    changes: List[DependencyChange] = []
    for section in sections:
        section_changes = diff_section(original.get(section), current.get(section))
        if section_changes:
            changes.extend(section_changes)
    return changes


def build_file_diff(
    name: str,
    original: Manifest,
    current: Manifest,
    sections: Sequence[str] = DEPENDENCY_SECTIONS
) -> FileDiff:
    """Diff two manifests and attach the file name."""
    return FileDiff(name=name, dependencies=diff_manifest(original, current, sections))


def is_candidate_file(file: CompareFile) -> bool:
    """
    Check whether a changed file should be diffed.

    Only modified files whose basename is exactly package.json qualify;
    added, removed and renamed manifests are skipped.
    """
    return (
        file.status == FileStatus.MODIFIED.value
        and MANIFEST_PATH_PATTERN.fullmatch(file.filename) is not None
    )


def select_candidate_files(files: Iterable[CompareFile]) -> List[CompareFile]:
    """Filter compare results down to candidate manifests, keeping their order."""
    return [file for file in files if is_candidate_file(file)]


def has_dependency_changes(file_diffs: Sequence[FileDiff]) -> bool:
    """
    Decide whether an event should be reported at all.

    A single candidate file without dependency changes means the whole
    event is treated as "no dependencies changed", even if other files
    in the same pull request do have changes.
    """
    # TODO: report the files that do have changes instead of dropping the event
    return bool(file_diffs) and all(file_diff.has_changes for file_diff in file_diffs)
