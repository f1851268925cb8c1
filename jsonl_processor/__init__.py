"""
Summary statistics for line-delimited JSON phylogenetic tree exports.

The first line of an export holds the tree metadata (schema version,
mutation catalog, gene coordinates); every following line holds one node.
"""

from .exceptions import (
    DecompressionError,
    EmptyInputError,
    JsonlProcessorError,
    SchemaError,
)
from .models import (
    AminoAcidMutation,
    Config,
    GeneDetail,
    Metadata,
    Mutation,
    Node,
    NucleotideMutation,
    parse_mutation,
)
from .io_utils import is_gzip_path, iter_lines, open_jsonl
from .parser import iter_nodes, parse_metadata_line, parse_node_line, read_metadata
from .summary import NodeSummary, summarize_nodes
from .pipeline import AnalysisResult, analyze
from .tree_index import TreeIndex, build_view_config, load_tree, prepare_view

__all__ = [
    "DecompressionError",
    "EmptyInputError",
    "JsonlProcessorError",
    "SchemaError",
    "AminoAcidMutation",
    "Config",
    "GeneDetail",
    "Metadata",
    "Mutation",
    "Node",
    "NucleotideMutation",
    "parse_mutation",
    "is_gzip_path",
    "iter_lines",
    "open_jsonl",
    "iter_nodes",
    "parse_metadata_line",
    "parse_node_line",
    "read_metadata",
    "NodeSummary",
    "summarize_nodes",
    "AnalysisResult",
    "analyze",
    "TreeIndex",
    "build_view_config",
    "load_tree",
    "prepare_view",
]
