#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Path text import/export.

One path per line, written as comma-separated node ids followed by the
path name after the last " /":

    # comment
    utg1,utg2,utg3 /contig_1
    utg7,utg8

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from chainweaver.graph_core.data_structures import AssemblyGraph
from chainweaver.graph_core.path_registry import PathRecord, PathRegistry, parse_node_list

logger = logging.getLogger(__name__)

NAME_SEPARATOR = ' /'


@dataclass
class ImportEntry:
    """Outcome of importing one line."""
    line: int
    original_line: str
    name: Optional[str] = None
    node_ids: List[str] = field(default_factory=list)
    invalid_nodes: List[str] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class ImportReport:
    """Successful and failed lines of a path import."""
    successful: List[ImportEntry] = field(default_factory=list)
    failed: List[ImportEntry] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"{len(self.successful)} paths imported, {len(self.failed)} failed"


def parse_path_line(line: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Split a path line into (node list text, name).

    Returns:
        None for blank and comment lines; name is None when absent
    """
    stripped = line.strip()
    if not stripped or stripped.startswith('#') or stripped.startswith('//'):
        return None

    split_at = stripped.rfind(NAME_SEPARATOR)
    if split_at == -1:
        return stripped, None

    sequence = stripped[:split_at].strip()
    name = stripped[split_at + len(NAME_SEPARATOR):].strip()
    return sequence, name or None


def import_paths_text(
    text: str,
    graph: AssemblyGraph,
    registry: PathRegistry,
) -> ImportReport:
    """
    Import paths from text into a registry.

    Node ids absent from the graph are dropped from their line; a line
    with no valid ids fails. Unnamed lines become 'Imported Path N' and
    clashing names get a ' (n)' suffix.

    Args:
        text: Path file contents
        graph: Graph used to validate node ids
        registry: Registry receiving the paths

    Returns:
        ImportReport listing successful and failed lines
    """
    report = ImportReport()

    for line_no, line in enumerate(text.splitlines(), 1):
        parsed = parse_path_line(line)
        if parsed is None:
            continue
        sequence, name = parsed

        ids = parse_node_list(sequence)
        valid = [node_id for node_id in ids if graph.has_node(node_id)]
        invalid = [node_id for node_id in ids if not graph.has_node(node_id)]

        if not valid:
            report.failed.append(ImportEntry(
                line=line_no,
                original_line=line,
                invalid_nodes=invalid,
                reason='No valid nodes found',
            ))
            logger.warning(f"Path line {line_no}: no valid nodes, skipping")
            continue

        path = registry.add(valid, name=name or f"Imported Path {len(report.successful) + 1}")
        report.successful.append(ImportEntry(
            line=line_no,
            original_line=line,
            name=path.name,
            node_ids=valid,
            invalid_nodes=invalid,
        ))
        if invalid:
            logger.warning(f"Path {path.name!r}: skipped unknown nodes {', '.join(invalid)}")

    logger.info(f"Path import: {report.summary}")
    return report


def import_paths_file(path: str | Path, graph: AssemblyGraph, registry: PathRegistry) -> ImportReport:
    """Read a path file and import it into a registry."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Path file not found: {path}")
    return import_paths_text(path.read_text(encoding='utf-8'), graph, registry)


def clean_path_name(name: str) -> str:
    """Collapse whitespace in a path name; empty names become 'Untitled Path'."""
    cleaned = re.sub(r'\s+', ' ', name.replace('\t', ' ').replace('\n', ' ')).strip()
    return cleaned or 'Untitled Path'


def format_path_line(path: PathRecord) -> str:
    return f"{path.as_text()}{NAME_SEPARATOR}{clean_path_name(path.name)}"


def export_paths_text(paths: Iterable[PathRecord]) -> str:
    """Render paths in the import format, with a comment header."""
    paths = list(paths)
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    lines = [
        "# Exported paths from ChainWeaver",
        f"# Export date: {timestamp}",
        f"# Total paths: {len(paths)}",
        "",
    ]
    for path in paths:
        if path.updated and path.update_reason:
            lines.append(f"# {path.update_reason}")
        lines.append(format_path_line(path))
    return "\n".join(lines) + "\n"


def export_paths_file(paths: Iterable[PathRecord], output_path: str | Path) -> int:
    """
    Write paths to a file in the import format.

    Returns:
        Number of paths written
    """
    paths = list(paths)
    output_path = Path(output_path)
    output_path.write_text(export_paths_text(paths), encoding='utf-8')
    logger.info(f"Exported {len(paths)} paths to {output_path}")
    return len(paths)

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
