"""Aggregate statistics over a tree export and their text rendering."""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import Metadata, Node

logger = logging.getLogger(__name__)


@dataclass
class NodeSummary:
    """Running totals collected in a single pass over the node lines."""

    node_count: int = 0
    """Number of node lines processed."""

    total_mutations: int = 0
    """Sum of the mutation-list lengths of all nodes."""

    total_tips: int = 0
    """Sum of ``num_tips`` over all nodes."""

    root: Optional[Node] = None
    """First node, in input order, that is its own parent."""

    root_count: int = 0
    """How many nodes claimed to be the root."""

    _max_x_dist: float = field(default=-math.inf, init=False, repr=False)
    _min_x_dist: float = field(default=math.inf, init=False, repr=False)

    def add(self, node: Node) -> None:
        """Fold one node into the totals."""
        self.node_count += 1
        self.total_mutations += len(node.mutations)
        self.total_tips += node.num_tips

        # Comparisons against NaN are false, so NaN never displaces a bound
        if node.x_dist > self._max_x_dist:
            self._max_x_dist = node.x_dist
        if node.x_dist < self._min_x_dist:
            self._min_x_dist = node.x_dist

        if node.is_root():
            self.root_count += 1
            if self.root is None:
                self.root = node
            else:
                logger.warning(
                    f"Node {node.node_id} ({node.name!r}) is also its own parent; "
                    f"keeping {self.root.node_id} as root"
                )

    @property
    def max_x_dist(self) -> Optional[float]:
        """Largest branch distance, or None when no node was seen."""
        return self._max_x_dist if self.node_count else None

    @property
    def min_x_dist(self) -> Optional[float]:
        """Smallest branch distance, or None when no node was seen."""
        return self._min_x_dist if self.node_count else None

    @property
    def average_tips(self) -> float:
        """Mean tip count per node; defined as 0.0 for an empty tree."""
        if self.node_count == 0:
            return 0.0
        return float(self.total_tips) / self.node_count


def summarize_nodes(nodes: Iterable[Node]) -> NodeSummary:
    """Reduce a node sequence to a ``NodeSummary``."""
    summary = NodeSummary()
    for node in nodes:
        summary.add(node)
    if summary.node_count == 0:
        logger.warning("No node lines found after the metadata line")
    elif summary.root is None:
        logger.warning("No root node found (no node is its own parent)")
    return summary


def _format_optional(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value}"


def format_metadata_summary(metadata: Metadata) -> str:
    """Render the metadata block of the report."""
    lines: List[str] = [
        "Metadata:",
        f"Version: {metadata.version}",
        f"Total nodes: {metadata.total_nodes}",
        f"Number of tips: {metadata.config.num_tips}",
        f"Number of mutations: {len(metadata.mutations)}",
        f"Number of AA mutations: {len(metadata.amino_acid_mutations)}",
        f"Number of NT mutations: {len(metadata.nucleotide_mutations)}",
    ]
    return "\n".join(lines) + "\n"


def format_node_summary(summary: NodeSummary) -> str:
    """Render the node analysis block of the report."""
    if summary.root is None:
        root_line = "Root node: none found"
    else:
        root_line = f"Root node: {summary.root.name} (id {summary.root.node_id})"

    lines: List[str] = [
        "",
        "Node Data Analysis:",
        f"Total nodes: {summary.node_count}",
        f"Total mutations in nodes: {summary.total_mutations}",
        f"Max x_dist: {_format_optional(summary.max_x_dist)}",
        f"Min x_dist: {_format_optional(summary.min_x_dist)}",
        root_line,
        f"Average number of tips per node: {summary.average_tips:.2f}",
    ]
    return "\n".join(lines) + "\n"
