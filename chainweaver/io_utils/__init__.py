"""
ChainWeaver v0.1.0

I/O module for ChainWeaver.

1. graph_records.py - GFA/DOT text -> plain records -> AssemblyGraph
2. path_io.py - Path text import/export
3. assembly_export.py - GFA export, FASTA and reconstruction reports
"""

from .graph_records import (
    EdgeRecord,
    GraphRecords,
    NodeRecord,
    PathLineRecord,
    load_graph,
    load_records,
    parse_dot_text,
    parse_gfa_text,
)
from .path_io import (
    ImportReport,
    export_paths_file,
    export_paths_text,
    import_paths_file,
    import_paths_text,
    parse_path_line,
)
from .assembly_export import (
    export_graph_to_gfa,
    format_reconstruction_report,
    reconstruction_to_dict,
    validate_gfa_file,
    write_reconstruction_report,
    write_sequence_fasta,
)

__all__ = [
    # Graph records
    "NodeRecord",
    "EdgeRecord",
    "PathLineRecord",
    "GraphRecords",
    "parse_gfa_text",
    "parse_dot_text",
    "load_records",
    "load_graph",

    # Paths
    "ImportReport",
    "parse_path_line",
    "import_paths_text",
    "import_paths_file",
    "export_paths_text",
    "export_paths_file",

    # Export
    "export_graph_to_gfa",
    "validate_gfa_file",
    "write_sequence_fasta",
    "reconstruction_to_dict",
    "format_reconstruction_report",
    "write_reconstruction_report",
]
