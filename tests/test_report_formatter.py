"""
Tests for the Report Formatter

The rendered text is posted verbatim, so these tests compare exact strings.
"""

from pkgdiff.models import DependencyChange, FileDiff
from pkgdiff.services.report_formatter import format_file_section, format_report


def _example_file(name: str = "package.json") -> FileDiff:
    # Engine order: added, removed, changed
    return FileDiff(name=name, dependencies=[
        DependencyChange.added("bluebird", "2.0.0"),
        DependencyChange.removed("browserify", "^1.0.0"),
        DependencyChange.changed("honeybee", "^1.0.0", "^2.0.0"),
    ])


class TestFormatFileSection:
    """Test suite for a single file section."""

    def test_example_section(self):
        """Changed lines come first, then added, then removed."""
        expected = (
            '\n"package.json" *(1 modified, 1 added, 1 removed)*:\n'
            "```\n"
            "+ honeybee@^2.0.0 (from ^1.0.0)\n"
            "+ bluebird@2.0.0\n"
            "- browserify@^1.0.0\n"
            "```"
        )

        assert format_file_section(_example_file()) == expected

    def test_file_name_is_json_quoted(self):
        section = format_file_section(FileDiff(
            name='odd "dir"/package.json',
            dependencies=[DependencyChange.added("a", "1")]
        ))

        assert section.startswith('\n"odd \\"dir\\"/package.json" *(0 modified, 1 added, 0 removed)*:\n')

    def test_non_ascii_file_name_kept(self):
        section = format_file_section(FileDiff(
            name="paquete/ñ/package.json",
            dependencies=[DependencyChange.added("a", "1")]
        ))

        assert '"paquete/ñ/package.json"' in section

    def test_only_removals(self):
        section = format_file_section(FileDiff(name="package.json", dependencies=[
            DependencyChange.removed("left-pad", "0.0.3"),
            DependencyChange.removed("request", "^2.0.0"),
        ]))

        assert section == (
            '\n"package.json" *(0 modified, 0 added, 2 removed)*:\n'
            "```\n"
            "- left-pad@0.0.3\n"
            "- request@^2.0.0\n"
            "```"
        )

    def test_partition_uses_present_ranges(self):
        """An empty-string range is still present."""
        section = format_file_section(FileDiff(name="package.json", dependencies=[
            DependencyChange.changed("a", "", "1.0.0"),
        ]))

        assert "*(1 modified, 0 added, 0 removed)*" in section
        assert "+ a@1.0.0 (from )" in section


class TestFormatReport:
    """Test suite for the full comment body."""

    def test_example_report(self):
        report = format_report([_example_file()], "base123", "head456")

        assert report == (
            "base123...head456 includes dependency changes!\n"
            '\n"package.json" *(1 modified, 1 added, 1 removed)*:\n'
            "```\n"
            "+ honeybee@^2.0.0 (from ^1.0.0)\n"
            "+ bluebird@2.0.0\n"
            "- browserify@^1.0.0\n"
            "```"
        )

    def test_multiple_files_in_input_order(self):
        second = FileDiff(name="web/package.json", dependencies=[
            DependencyChange.added("react", "^18.0.0"),
        ])

        report = format_report([_example_file(), second], "a", "b")

        assert report.index('"package.json"') < report.index('"web/package.json"')
        assert report.endswith(
            "```"
            '\n"web/package.json" *(0 modified, 1 added, 0 removed)*:\n'
            "```\n"
            "+ react@^18.0.0\n"
            "```"
        )

    def test_header_only_without_files(self):
        assert format_report([], "a", "b") == "a...b includes dependency changes!\n"
