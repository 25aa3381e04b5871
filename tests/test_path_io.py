#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Tests for path text import and export.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from chainweaver.graph_core import PathRegistry
from chainweaver.io_utils import (
    export_paths_file,
    export_paths_text,
    import_paths_file,
    import_paths_text,
    parse_path_line,
)
from chainweaver.io_utils.path_io import clean_path_name


class TestPathLineParsing:
    """Test single-line parsing."""

    def test_named_line(self):
        """Test a line with a name."""
        assert parse_path_line("A,B,C /My Path") == ("A,B,C", "My Path")

    def test_name_after_last_separator(self):
        """Test that the name follows the last ' /'."""
        assert parse_path_line("A,B /odd /name") == ("A,B /odd", "name")

    def test_unnamed_line(self):
        """Test a line without a name."""
        assert parse_path_line("  A,B  ") == ("A,B", None)

    @pytest.mark.parametrize("line", ["", "   ", "# comment", "// comment"])
    def test_skipped_lines(self, line):
        """Test that blank and comment lines are skipped."""
        assert parse_path_line(line) is None


class TestPathImport:
    """Test importing paths into a registry."""

    def test_import(self, branching_chain_graph):
        """Test names, invalid ids and failed lines."""
        text = "\n".join([
            "# header",
            "",
            "A,B,C /main",
            "X1,ghost,A",
            "ghost,phantom /bad",
            "B,C /main",
        ])
        registry = PathRegistry()
        report = import_paths_text(text, branching_chain_graph, registry)

        assert [e.name for e in report.successful] == ["main", "Imported Path 2", "main (1)"]
        assert report.successful[1].node_ids == ["X1", "A"]
        assert report.successful[1].invalid_nodes == ["ghost"]
        assert len(report.failed) == 1
        assert report.failed[0].line == 5
        assert report.failed[0].reason == "No valid nodes found"
        assert report.summary == "3 paths imported, 1 failed"
        assert len(registry) == 3

    def test_import_missing_file(self, temp_output_dir, branching_chain_graph):
        """Test that a missing path file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            import_paths_file(temp_output_dir / "absent.txt", branching_chain_graph, PathRegistry())


class TestPathExport:
    """Test exporting paths."""

    def test_clean_name(self):
        """Test whitespace collapsing and the empty-name fallback."""
        assert clean_path_name("a\tb\n  c") == "a b c"
        assert clean_path_name("   ") == "Untitled Path"

    def test_export_text(self):
        """Test the header and update-reason comments."""
        registry = PathRegistry()
        registry.add("A,B", name="first")
        second = registry.add("C", name="second")
        second.mark_updated("Nodes merged: C, D → M")

        text = export_paths_text(registry.all())
        lines = text.splitlines()
        assert lines[0] == "# Exported paths from ChainWeaver"
        assert lines[2] == "# Total paths: 2"
        assert "A,B /first" in lines
        assert lines[-2] == "# Nodes merged: C, D → M"
        assert lines[-1] == "C /second"

    def test_export_reimport(self, temp_output_dir, branching_chain_graph):
        """Test that exported paths import back with the same names and ids."""
        registry = PathRegistry()
        registry.add("A,B,C", name="main")
        registry.add("X1,A", name="left")
        output = temp_output_dir / "paths.txt"
        assert export_paths_file(registry.all(), output) == 2

        reloaded = PathRegistry()
        report = import_paths_file(output, branching_chain_graph, reloaded)
        assert not report.failed
        assert [(p.name, p.node_ids) for p in reloaded] == [
            ("main", ["A", "B", "C"]),
            ("left", ["X1", "A"]),
        ]

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
