#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for ChainWeaver.

This module provides the main CLI entry point and all subcommands for
contracting linear chains in assembly graphs and reconstructing path
sequences.
"""

import logging
import sys
from pathlib import Path

import click
import yaml

from .version import __version__
from .config.parser import ConfigParser, ConfigValidationError
from .config.schema import load_config, save_config_template, validate_config
from .graph_core.chain_contraction_module import contracted_node_info
from .graph_core.data_structures import GraphEditError
from .graph_core.graph_editor import GraphEditor
from .graph_core.path_registry import PathRegistry
from .io_utils.assembly_export import (
    export_graph_to_gfa,
    format_reconstruction_report,
    write_reconstruction_report,
    write_sequence_fasta,
)
from .io_utils.graph_records import load_records
from .io_utils.path_io import export_paths_file, import_paths_file

logger = logging.getLogger(__name__)


def _setup_logging(config, verbose, quiet):
    """Configure the root logger from config and verbosity flags."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = getattr(logging, str(config['output']['logging']['level']).upper(), logging.INFO)

    handlers = [logging.StreamHandler()]
    log_file = config['output']['logging'].get('log_file')
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def _fail(message):
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


def _load_session(ctx, graph_file, paths_file=None):
    """Load a graph, its declared paths and an optional path file into an editor."""
    config = ctx.obj['CONFIG']
    records = load_records(graph_file)
    graph = records.to_graph()

    registry = PathRegistry()
    for path_line in records.paths:
        valid = [n for n in path_line.node_ids if graph.has_node(n)]
        if len(valid) < len(path_line.node_ids):
            logger.warning(f"Path {path_line.name}: dropped {len(path_line.node_ids) - len(valid)} "
                           f"unknown node(s)")
        if valid:
            registry.add(valid, name=path_line.name)

    if paths_file:
        report = import_paths_file(paths_file, graph, registry)
        click.echo(f"Paths: {report.summary}")

    return GraphEditor.from_config(graph, config, paths=registry), records


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def main(ctx, verbose, quiet, config_file):
    """
    ChainWeaver: assembly graph chain contraction and path sequence reconstruction

    Contracts unbranched runs of nodes in GFA/DOT assembly graphs and splices
    path sequences from link orientation and overlap metadata.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    try:
        parser = ConfigParser(config_file)
        parser.validate()
    except (ConfigValidationError, FileNotFoundError) as e:
        _fail(f"Error loading configuration: {e}")

    ctx.obj['CONFIG_PARSER'] = parser
    ctx.obj['CONFIG'] = parser.to_dict()
    _setup_logging(ctx.obj['CONFIG'], verbose, quiet)


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='chainweaver_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t',
              type=click.Choice(['default', 'strict', 'lenient']),
              default='default', help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")

    try:
        save_config_template(Path(output), template=template)
    except OSError as e:
        _fail(f"Error creating configuration: {e}")

    click.echo(f"✓ Configuration file created: {output}")
    click.echo("\nThe configuration file includes:")
    click.echo("  • Reconstruction similarity thresholds")
    click.echo("  • Contracted node id scheme")
    click.echo("  • Undo history size")
    click.echo("  • Report and logging output")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        _fail(f"Error validating configuration: {e}")

    errors = validate_config(config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")
    click.echo("\nKey Settings:")
    recon = config['reconstruction']
    click.echo(f"  Thresholds: perfect {recon['perfect_threshold']}, fuzzy {recon['fuzzy_threshold']}")
    click.echo(f"  Id scheme: {config['contraction']['id_scheme']}")
    click.echo(f"  History size: {config['history']['max_size']}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', type=click.Choice(['yaml', 'summary']), default='summary',
              help='Output format')
def config_show(config_file, format):
    """Display configuration settings."""
    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        _fail(f"Error reading configuration: {e}")

    if format == 'yaml':
        click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))
        return

    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)

    recon = config['reconstruction']
    click.echo("\nReconstruction:")
    click.echo(f"  Perfect threshold: {recon['perfect_threshold']}")
    click.echo(f"  Fuzzy threshold: {recon['fuzzy_threshold']}")
    click.echo(f"  Reorientation threshold: {recon['reorientation_threshold']}")
    click.echo(f"  Placeholder base: {recon['placeholder_base']}")

    click.echo("\nContraction:")
    click.echo(f"  Id scheme: {config['contraction']['id_scheme']}")
    click.echo(f"  History size: {config['history']['max_size']}")

    click.echo("\nOutput:")
    click.echo(f"  Report format: {config['output']['report_format']}")
    click.echo(f"  Log level: {config['output']['logging']['level']}")


# ============================================================================
# Graph Editing Commands
# ============================================================================

@main.command()
@click.argument('graph_file', type=click.Path(exists=True))
@click.pass_context
def chains(ctx, graph_file):
    """List every maximal linear chain in a graph."""
    try:
        editor, _ = _load_session(ctx, graph_file)
    except (GraphEditError, ValueError) as e:
        _fail(str(e))

    found = editor.chains()
    click.echo(f"{len(found)} linear chains in {graph_file}")
    for chain in found:
        length = sum(editor.graph.get_node(n).length for n in chain)
        click.echo(f"  {chain[0]} → {chain[-1]}: {len(chain)} nodes, {length:,} bp ({','.join(chain)})")


@main.command()
@click.argument('graph_file', type=click.Path(exists=True))
@click.option('--node', '-n', 'nodes', multiple=True, required=True,
              help='Node whose linear chain is contracted (repeatable)')
@click.option('--paths', '-p', 'paths_file', type=click.Path(exists=True),
              help='Path file to rewrite alongside the graph')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output GFA file')
@click.option('--paths-output', type=click.Path(),
              help='Output path file with rewritten paths')
@click.option('--expand-sequences', is_flag=True,
              help='Write reconstructed sequences for contracted nodes')
@click.pass_context
def contract(ctx, graph_file, nodes, paths_file, output, paths_output, expand_sequences):
    """
    Contract the linear chains containing the given nodes.

    Chains are contracted in the order given; a node already absorbed by an
    earlier contraction is skipped.
    """
    try:
        editor, _ = _load_session(ctx, graph_file, paths_file)
        absorbed = set()

        for node_id in nodes:
            if node_id in absorbed:
                click.echo(f"  • {node_id} already contracted, skipping")
                continue
            result = editor.contract(node_id)
            absorbed.update(result.original_node_ids)
            info = contracted_node_info(result.merged_node)
            click.echo(
                f"✓ {result.label}: {info['member_count']} nodes → {result.merged_node_id} "
                f"({info['total_length']:,} bp, {result.external_edge_count} external edges, "
                f"{len(result.rewritten_paths)} paths rewritten)"
            )

        reconstructor = editor.reconstructor if expand_sequences else None
        counts = export_graph_to_gfa(
            editor.graph, output, reconstructor=reconstructor, paths=editor.paths.all()
        )
        click.echo(f"✓ Graph written: {output} ({counts['segments']} segments, {counts['links']} links, "
                   f"{counts['paths']} paths)")

        if paths_output:
            written = export_paths_file(editor.paths.all(), paths_output)
            click.echo(f"✓ Paths written: {paths_output} ({written} paths)")
    except (GraphEditError, ValueError) as e:
        _fail(str(e))


@main.command()
@click.argument('graph_file', type=click.Path(exists=True))
@click.option('--path', 'path_text', help='Comma-separated node ids, e.g. "utg1,utg2,utg3"')
@click.option('--paths', '-p', 'paths_file', type=click.Path(exists=True),
              help='Path file to choose the path from')
@click.option('--name', help='Name of a path from the graph file or --paths file')
@click.option('--output', '-o', type=click.Path(), help='Output FASTA file')
@click.option('--report', '-r', 'report_file', type=click.Path(), help='Output report file')
@click.option('--format', '-f', 'report_format', type=click.Choice(['text', 'json']),
              help='Report format (default from configuration)')
@click.option('--perfect-threshold', type=float,
              help='Similarity accepted as a perfect overlap (overrides configuration)')
@click.option('--fuzzy-threshold', type=float,
              help='Similarity accepted as a fuzzy overlap (overrides configuration)')
@click.pass_context
def reconstruct(ctx, graph_file, path_text, paths_file, name, output, report_file, report_format,
                perfect_threshold, fuzzy_threshold):
    """Reconstruct the spliced sequence of a path."""
    if not path_text and not name:
        _fail("Give either --path or --name")

    parser = ctx.obj['CONFIG_PARSER']
    parser.merge_cli_overrides({
        'reconstruction.perfect_threshold': perfect_threshold,
        'reconstruction.fuzzy_threshold': fuzzy_threshold,
    })
    try:
        parser.validate()
    except ConfigValidationError as e:
        _fail(str(e))

    config = ctx.obj['CONFIG'] = parser.to_dict()
    report_format = report_format or config['output']['report_format']

    try:
        editor, _ = _load_session(ctx, graph_file, paths_file)
        if path_text:
            result = editor.reconstruct_path(
                [n.strip() for n in path_text.split(',') if n.strip()],
                path_name=name or "Reconstructed Path",
            )
        else:
            result = editor.reconstruct_path(name)
    except KeyError as e:
        _fail(f"Unknown path: {e}")
    except (GraphEditError, ValueError) as e:
        _fail(str(e))

    diag = result.diagnostics
    click.echo(f"✓ Reconstructed {result.path_name}: {result.length:,} bp")
    click.echo(
        f"  {diag.perfect_overlaps} perfect, {diag.fuzzy_overlaps} fuzzy, "
        f"{diag.gap_insertions} gaps, {diag.concatenations} concatenations "
        f"({diag.success_rate * 100:.1f}% spliced)"
    )

    if output:
        write_sequence_fasta(result, output, line_width=config['output']['fasta_line_width'])
        click.echo(f"✓ Sequence written: {output}")
    if report_file:
        write_reconstruction_report(result, report_file, report_format)
        click.echo(f"✓ Report written: {report_file}")
    if not output and not report_file:
        click.echo(format_reconstruction_report(result))
        click.echo(result.sequence)


# ============================================================================
# Utility Commands
# ============================================================================

@main.command()
def version():
    """Show version information."""
    click.echo(f"ChainWeaver v{__version__}")
    click.echo("\nDependencies:")

    import numpy
    click.echo(f"  NumPy: {numpy.__version__}")
    click.echo(f"  Click: {click.__version__}")
    click.echo(f"  PyYAML: {yaml.__version__}")


if __name__ == '__main__':
    sys.exit(main())
