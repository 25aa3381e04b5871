#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Tests for CLI command interface.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json

import pytest
from click.testing import CliRunner
from chainweaver.cli import main
from chainweaver.io_utils import validate_gfa_file


@pytest.fixture
def gfa_file(temp_output_dir, branching_gfa_text):
    """Branching chain graph written to disk."""
    path = temp_output_dir / "graph.gfa"
    path.write_text(branching_gfa_text)
    return path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test that --help runs without error."""
        runner = CliRunner()
        result = runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert 'ChainWeaver' in result.output

    def test_cli_version(self):
        """Test that --version displays version."""
        runner = CliRunner()
        result = runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_version_command(self):
        """Test the version command lists dependencies."""
        runner = CliRunner()
        result = runner.invoke(main, ['version'])

        assert result.exit_code == 0
        assert 'NumPy' in result.output

    def test_invalid_command(self):
        """Test that invalid commands are handled gracefully."""
        runner = CliRunner()
        result = runner.invoke(main, ['nonexistent_command'])

        # Should fail but not crash
        assert result.exit_code != 0


class TestConfigCommands:
    """Test configuration subcommands."""

    def test_config_init_and_validate(self):
        """Test that a generated template validates."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            result = runner.invoke(main, ['config', 'init', '--output', 'test_config.yaml', '-t', 'strict'])
            assert result.exit_code == 0

            result = runner.invoke(main, ['config', 'validate', 'test_config.yaml'])
            assert result.exit_code == 0
            assert 'Configuration is valid' in result.output

    def test_config_validate_failure(self):
        """Test that invalid settings fail validation."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            with open('bad.yaml', 'w') as f:
                f.write("history:\n  max_size: 0\n")
            result = runner.invoke(main, ['config', 'validate', 'bad.yaml'])
            assert result.exit_code == 1

    def test_config_validate_non_mapping(self):
        """Test that a YAML list fails validation with a message, not a traceback."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            with open('list.yaml', 'w') as f:
                f.write("- a\n- b\n")
            result = runner.invoke(main, ['config', 'validate', 'list.yaml'])
            assert result.exit_code == 1
            assert 'mapping' in result.output

            result = runner.invoke(main, ['config', 'show', 'list.yaml'])
            assert result.exit_code == 1
            assert not isinstance(result.exception, AttributeError)

    def test_config_show_yaml(self):
        """Test printing a configuration as YAML."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            runner.invoke(main, ['config', 'init', '--output', 'c.yaml'])
            result = runner.invoke(main, ['config', 'show', 'c.yaml', '--format', 'yaml'])
            assert result.exit_code == 0
            assert 'perfect_threshold: 0.8' in result.output

    def test_global_config_rejected(self):
        """Test that an invalid --config aborts before any command runs."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            with open('bad.yaml', 'w') as f:
                f.write("contraction:\n  id_scheme: uuid\n")
            result = runner.invoke(main, ['--config', 'bad.yaml', 'version'])
            assert result.exit_code == 1


class TestGraphCommands:
    """Test chains, contract and reconstruct."""

    def test_chains(self, gfa_file):
        """Test listing linear chains."""
        runner = CliRunner()
        result = runner.invoke(main, ['chains', str(gfa_file)])

        assert result.exit_code == 0
        assert '1 linear chains' in result.output
        assert 'B,C' in result.output

    def test_contract(self, gfa_file, temp_output_dir):
        """Test contracting a chain and writing graph and paths."""
        runner = CliRunner()
        output = temp_output_dir / "contracted.gfa"
        paths_output = temp_output_dir / "paths.txt"
        result = runner.invoke(main, [
            'contract', str(gfa_file), '--node', 'B', '--node', 'C',
            '-o', str(output), '--paths-output', str(paths_output),
        ])

        assert result.exit_code == 0
        assert 'C already contracted' in result.output
        stats = validate_gfa_file(output)
        assert stats['segments'] == 4
        assert stats['paths'] == 1
        assert 'P\tmain\tA+,MERGED_B_C_' in output.read_text()
        assert 'A,MERGED_B_C_' in paths_output.read_text()

    def test_contract_branch_point_fails(self, gfa_file, temp_output_dir):
        """Test that contracting a branch point exits with an error."""
        runner = CliRunner()
        result = runner.invoke(main, ['contract', str(gfa_file), '--node', 'A',
                                      '-o', str(temp_output_dir / "out.gfa")])

        assert result.exit_code == 1

    def test_reconstruct_path(self, gfa_file):
        """Test reconstructing an explicit node list."""
        runner = CliRunner()
        result = runner.invoke(main, ['reconstruct', str(gfa_file), '--path', 'A,B,C'])

        assert result.exit_code == 0
        assert 'AAACCGTTAGGG' in result.output

    def test_reconstruct_named_path(self, gfa_file, temp_output_dir):
        """Test reconstructing a GFA path by name into FASTA and JSON."""
        runner = CliRunner()
        fasta = temp_output_dir / "main.fasta"
        report = temp_output_dir / "main.json"
        result = runner.invoke(main, [
            'reconstruct', str(gfa_file), '--name', 'main',
            '-o', str(fasta), '--report', str(report), '--format', 'json',
        ])

        assert result.exit_code == 0
        assert fasta.read_text().splitlines()[1] == 'AAACCGTTAGGG'
        assert json.loads(report.read_text())['length'] == 12

    def test_reconstruct_from_path_file(self, gfa_file, temp_output_dir):
        """Test choosing a path from a path file."""
        runner = CliRunner()
        paths = temp_output_dir / "paths.txt"
        paths.write_text("A,B /short\n")
        result = runner.invoke(main, ['reconstruct', str(gfa_file), '--paths', str(paths), '--name', 'short'])

        assert result.exit_code == 0
        assert 'AAACCGTTA' in result.output

    def test_reconstruct_unknown_name(self, gfa_file):
        """Test that an unknown path name exits with an error."""
        runner = CliRunner()
        result = runner.invoke(main, ['reconstruct', str(gfa_file), '--name', 'nope'])

        assert result.exit_code == 1

    def test_reconstruct_threshold_override(self, gfa_file):
        """Test that threshold options reach the reconstructor."""
        runner = CliRunner()
        result = runner.invoke(main, ['reconstruct', str(gfa_file), '--path', 'A,B,C',
                                      '--perfect-threshold', '1.0'])

        assert result.exit_code == 0
        assert '2 perfect' in result.output

    def test_reconstruct_invalid_threshold_override(self, gfa_file):
        """Test that a fuzzy threshold above the perfect one is rejected."""
        runner = CliRunner()
        result = runner.invoke(main, ['reconstruct', str(gfa_file), '--path', 'A,B,C',
                                      '--fuzzy-threshold', '0.9'])

        assert result.exit_code == 1

    def test_reconstruct_requires_path(self, gfa_file):
        """Test that either --path or --name is required."""
        runner = CliRunner()
        result = runner.invoke(main, ['reconstruct', str(gfa_file)])

        assert result.exit_code == 1

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
