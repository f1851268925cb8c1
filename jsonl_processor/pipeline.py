"""
Single-pass analysis of a tree export.

1. Open the file, decompressing ``.gz`` input.
2. Parse and report the metadata line.
3. Stream the node lines through a ``NodeSummary`` and report it.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from .io_utils import iter_lines, open_jsonl
from .models import Metadata
from .parser import iter_nodes, read_metadata
from .summary import (
    NodeSummary,
    format_metadata_summary,
    format_node_summary,
    summarize_nodes,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Result from analysing one tree export."""

    metadata: Metadata
    """The parsed header record."""

    nodes: NodeSummary
    """Totals over the node lines."""


def analyze(file_path: Path | str, out: Optional[TextIO] = None) -> AnalysisResult:
    """
    Read a tree export and write the summary report to ``out``.

    The metadata block is written as soon as the first line parses. The node
    block is written only once every node line has parsed, so a malformed
    node line leaves just the metadata block behind.

    Args:
        file_path: Path to a ``.jsonl`` or ``.jsonl.gz`` export.
        out: Text stream for the report (defaults to stdout).

    Returns:
        The parsed metadata and node totals.
    """
    out = sys.stdout if out is None else out
    logger.info(f"Reading tree export from {file_path}")

    with open_jsonl(file_path) as stream:
        lines = iter_lines(stream)
        metadata = read_metadata(lines)
        out.write(format_metadata_summary(metadata))

        summary = summarize_nodes(iter_nodes(lines))

    out.write(format_node_summary(summary))
    logger.info(f"Finished: {summary.node_count} nodes")
    return AnalysisResult(metadata=metadata, nodes=summary)
