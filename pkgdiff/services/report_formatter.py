"""
Report Formatter Module

Renders dependency diffs as the Markdown body of a commit comment.
The output is posted verbatim, so whitespace and newlines are significant.
"""

import json
from typing import List, Sequence

from pkgdiff.models import ChangeType, DependencyChange, FileDiff


def _partition(dependencies: Sequence[DependencyChange], change_type: ChangeType) -> List[DependencyChange]:
    return [dep for dep in dependencies if dep.change_type is change_type]


def format_file_section(file_diff: FileDiff) -> str:
    """
    Format the header and code block for one package.json.

    Example:
        "package.json" *(1 modified, 1 added, 0 removed)*:
        ```
        + honeybee@^2.0.0 (from ^1.0.0)
        + bluebird@2.0.0
        ```
    """
    added = _partition(file_diff.dependencies, ChangeType.ADDED)
    changed = _partition(file_diff.dependencies, ChangeType.CHANGED)
    removed = _partition(file_diff.dependencies, ChangeType.REMOVED)

    header = (
        f"\n{json.dumps(file_diff.name, ensure_ascii=False)} "
        f"*({len(changed)} modified, {len(added)} added, {len(removed)} removed)*:\n"
    )

    block: List[str] = []
    block.extend(f"+ {dep.name}@{dep.current} (from {dep.previous})" for dep in changed)
    block.extend(f"+ {dep.name}@{dep.current}" for dep in added)
    block.extend(f"- {dep.name}@{dep.previous}" for dep in removed)

    return header + "```\n" + "\n".join(block) + "\n```"


def format_report(files: Sequence[FileDiff], base_ref: str, head_ref: str) -> str:
    """
    Format the full comment body.

    Args:
        files: Per-file diffs, rendered in the given order
        base_ref: Base commit SHA or ref
        head_ref: Head commit SHA or ref

    Returns:
        Markdown comment body
    """
    text = f"{base_ref}...{head_ref} includes dependency changes!\n"
    return text + "".join(format_file_section(file_diff) for file_diff in files)
