#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Tests for GFA export, FASTA output and reconstruction reports.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json

import pytest

from chainweaver.graph_core import PathRegistry, SequenceReconstructor, contract, reconstruct
from chainweaver.io_utils import (
    export_graph_to_gfa,
    format_reconstruction_report,
    load_graph,
    load_records,
    reconstruction_to_dict,
    validate_gfa_file,
    write_reconstruction_report,
    write_sequence_fasta,
)


class TestGFAExport:
    """Test GFA export of edited graphs."""

    def test_export_counts(self, branching_chain_graph, temp_output_dir):
        """Test that every node and link is written."""
        output = temp_output_dir / "out.gfa"
        counts = export_graph_to_gfa(branching_chain_graph, output)
        assert counts == {'segments': 5, 'links': 4, 'paths': 0}

        stats = validate_gfa_file(output)
        assert stats == {'segments': 5, 'links': 4, 'paths': 0, 'version': '1.0'}

    def test_contracted_node_tag(self, branching_chain_graph, temp_output_dir):
        """Test that contracted nodes carry their members and an unknown sequence."""
        merged_id = contract(branching_chain_graph, "B").merged_node_id
        output = temp_output_dir / "out.gfa"
        export_graph_to_gfa(branching_chain_graph, output)

        lines = output.read_text().splitlines()
        segment = next(line for line in lines if line.startswith(f"S\t{merged_id}"))
        assert segment.split("\t")[2] == "*"
        assert "LN:i:12" in segment
        assert "CN:Z:B,C" in segment
        assert f"L\tA\t+\t{merged_id}\t-\t3M" in lines

    def test_expanded_sequences(self, branching_chain_graph, temp_output_dir):
        """Test that a reconstructor fills in contracted-node sequences."""
        merged_id = contract(branching_chain_graph, "B").merged_node_id
        output = temp_output_dir / "out.gfa"
        export_graph_to_gfa(branching_chain_graph, output, reconstructor=SequenceReconstructor())

        reloaded = load_graph(output)
        node = reloaded.get_node(merged_id)
        assert node.sequence == "CCGTTAGGG"
        assert node.length == 9

    def test_paths_written(self, branching_chain_graph, temp_output_dir):
        """Test that registry paths become P lines that load back."""
        merged_id = contract(branching_chain_graph, "B").merged_node_id
        paths = PathRegistry()
        paths.add(["A", merged_id], name="main path")
        output = temp_output_dir / "out.gfa"
        counts = export_graph_to_gfa(branching_chain_graph, output, paths=paths.all())

        assert counts['paths'] == 1
        assert f"P\tmain_path\tA+,{merged_id}+\t*" in output.read_text().splitlines()
        assert validate_gfa_file(output)['paths'] == 1

        records = load_records(output)
        assert records.paths[0].node_ids == ["A", merged_id]
        assert records.paths[0].orientations == ["+", "+"]


class TestReports:
    """Test sequence and report output."""

    def test_fasta_wrapping(self, branching_chain_graph, temp_output_dir):
        """Test FASTA header and line wrapping."""
        result = reconstruct(["A", "B", "C"], branching_chain_graph, path_name="main path")
        output = temp_output_dir / "main.fasta"
        write_sequence_fasta(result, output, line_width=5)

        lines = output.read_text().splitlines()
        assert lines[0] == ">main_path nodes=A,B,C length=12"
        assert lines[1:] == ["AAACC", "GTTAG", "GG"]

    def test_fasta_unwrapped(self, overlap_graph, temp_output_dir):
        """Test that a zero line width writes one sequence line."""
        result = reconstruct(["A", "B"], overlap_graph)
        output = temp_output_dir / "out.fasta"
        write_sequence_fasta(result, output, line_width=0)
        assert output.read_text().splitlines()[1] == "ACGTAC"

    def test_text_report(self, mismatch_graph):
        """Test that the text report lists diagnostics, steps and markers."""
        report = format_reconstruction_report(reconstruct(["A", "B"], mismatch_graph, path_name="p"))
        assert "Sequence reconstruction report: p" in report
        assert "Gap insertions: 1" in report
        assert "Success rate: 0.0%" in report
        assert "Step 1: added B+" in report
        assert "[MISMATCH:2bp:0.0%:ORIENTATIONS:A+-B+]" in report

    def test_dict_is_json_serialisable(self, overlap_graph):
        """Test the JSON view of a reconstruction."""
        data = reconstruction_to_dict(reconstruct(["A", "B"], overlap_graph))
        round_tripped = json.loads(json.dumps(data))
        assert round_tripped['sequence'] == "ACGTAC"
        assert round_tripped['diagnostics']['perfect_overlaps'] == 1
        assert round_tripped['segments'][1]['method'] == "perfect_overlap"

    def test_write_report_formats(self, overlap_graph, temp_output_dir):
        """Test report writing in both formats and rejection of others."""
        result = reconstruct(["A", "B"], overlap_graph)
        json_path = temp_output_dir / "report.json"
        write_reconstruction_report(result, json_path, "json")
        assert json.loads(json_path.read_text())['length'] == 6

        text_path = temp_output_dir / "report.txt"
        write_reconstruction_report(result, text_path, "text")
        assert "Length: 6 bp" in text_path.read_text()

        with pytest.raises(ValueError):
            write_reconstruction_report(result, temp_output_dir / "report.html", "html")

    def test_unknown_report_format_writes_nothing(self, overlap_graph, temp_output_dir):
        """Test that an unknown format fails before the file is created."""
        result = reconstruct(["A", "B"], overlap_graph)
        output = temp_output_dir / "report.html"
        with pytest.raises(ValueError):
            write_reconstruction_report(result, output, "html")
        assert not output.exists()

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
