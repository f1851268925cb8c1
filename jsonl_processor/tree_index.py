"""
Materialized loading of a tree export.

Where ``pipeline.analyze`` streams nodes through a summary, this module keeps
every node in memory together with the lookups a tree viewer needs: the
child-to-parent map, the root and its mutations, and interned per-node
metadata values.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from .constants import (
    DEFAULT_INITIAL_ZOOM,
    DEFAULT_KEYS_TO_DISPLAY,
    MISSING_META_CODE,
    NAMED_META_FIELDS,
    Y_ROUND_DECIMALS,
    Y_SCALE_LARGE_TREE_THRESHOLD,
    Y_SCALE_NUMERATOR,
    Y_SCALE_SMALL_TREE_FACTOR,
)
from .io_utils import iter_lines, open_jsonl
from .models import Config, Metadata, Node
from .parser import iter_nodes, read_metadata

logger = logging.getLogger(__name__)


@dataclass
class TreeIndex:
    """All nodes of one export plus derived lookups."""

    metadata: Metadata
    nodes: List[Node] = field(default_factory=list)
    child_to_parent: Dict[int, int] = field(default_factory=dict)
    root_id: Optional[int] = None
    root_mutations: List[int] = field(default_factory=list)

    meta_keys: List[str] = field(default_factory=list)
    """Metadata keys, fixed by the first node."""

    meta_codes: List[List[int]] = field(default_factory=list)
    """Per node (same order as ``nodes``), one code per key in ``meta_keys``."""

    meta_values: List[Dict[int, Any]] = field(default_factory=list)
    """Per key, code -> original value."""

    def meta_value(self, node_pos: int, key: str) -> Optional[Any]:
        """Decode the value of ``key`` for the node at position ``node_pos``."""
        key_pos = self.meta_keys.index(key)
        code = self.meta_codes[node_pos][key_pos]
        if code == MISSING_META_CODE:
            return None
        return self.meta_values[key_pos][code]


def node_meta(node: Node) -> Dict[str, Any]:
    """Flat metadata of a node: the named meta fields followed by any extra keys."""
    meta: Dict[str, Any] = {key: getattr(node, key) for key in NAMED_META_FIELDS}
    meta.update(node.extra)
    return meta


class _MetaInterner:
    def __init__(self, keys: Sequence[str]):
        self.keys = list(keys)
        self._lookup: List[Dict[str, int]] = [{} for _ in self.keys]
        self._values: List[Dict[int, Any]] = [{} for _ in self.keys]

    def encode(self, meta: Dict[str, Any]) -> List[int]:
        codes = []
        for i, key in enumerate(self.keys):
            if key not in meta:
                codes.append(MISSING_META_CODE)
                continue
            value = meta[key]
            token = json.dumps(value, sort_keys=True)
            code = self._lookup[i].get(token)
            if code is None:
                code = len(self._lookup[i])
                self._lookup[i][token] = code
                self._values[i][code] = value
            codes.append(code)
        return codes

    @property
    def values(self) -> List[Dict[int, Any]]:
        return self._values


def build_index(metadata: Metadata, nodes: Iterable[Node]) -> TreeIndex:
    """
    Collect ``nodes`` into a ``TreeIndex``.

    The first node that is its own parent becomes the root: its mutations are
    moved to ``root_mutations`` and it is stored with an empty mutation list.
    Self-parented nodes never appear in ``child_to_parent``.
    """
    index = TreeIndex(metadata=metadata)
    interner: Optional[_MetaInterner] = None

    for node in nodes:
        meta = node_meta(node)
        if interner is None:
            interner = _MetaInterner(meta.keys())
        index.meta_codes.append(interner.encode(meta))

        if node.is_root():
            if index.root_id is None:
                index.root_id = node.node_id
                index.root_mutations = list(node.mutations)
                node = replace(node, mutations=[])
            else:
                logger.warning(
                    f"Ignoring additional root candidate {node.node_id}; "
                    f"root is {index.root_id}"
                )
        else:
            index.child_to_parent[node.node_id] = node.parent_id

        index.nodes.append(node)

    if interner is not None:
        index.meta_keys = interner.keys
        index.meta_values = interner.values
    return index


def load_tree(file_path: Path | str) -> TreeIndex:
    """Read a whole export into memory."""
    with open_jsonl(file_path) as stream:
        lines = iter_lines(stream)
        metadata = read_metadata(lines)
        index = build_index(metadata, iter_nodes(lines))
    logger.info(f"Loaded {len(index.nodes)} nodes from {file_path}")
    return index


def calculate_extremes(nodes: Sequence[Node]) -> Tuple[float, float, float, float]:
    """
    Layout bounds of a node list.

    Returns:
        Tuple of (min_y, max_y, min_x, max_x), with x taken from ``x_dist``.

    Raises:
        ValueError: If ``nodes`` is empty.
    """
    if not nodes:
        raise ValueError("Cannot compute extremes of an empty node list")
    ys = np.array([n.y for n in nodes], dtype=float)
    xs = np.array([n.x_dist for n in nodes], dtype=float)
    return (
        float(np.nanmin(ys)),
        float(np.nanmax(ys)),
        float(np.nanmin(xs)),
        float(np.nanmax(xs)),
    )


def scale_y_coordinates(nodes: Sequence[Node]) -> List[Node]:
    """
    Stretch vertical coordinates to the viewer's canvas height.

    Small trees are spread a little wider than large ones. Results are rounded
    half away from zero to ``Y_ROUND_DECIMALS`` places.
    """
    num_nodes = len(nodes)
    if num_nodes == 0:
        return []
    if num_nodes > Y_SCALE_LARGE_TREE_THRESHOLD:
        scale_y = Y_SCALE_NUMERATOR / num_nodes
    else:
        scale_y = Y_SCALE_NUMERATOR / (num_nodes * Y_SCALE_SMALL_TREE_FACTOR)

    factor = 10.0**Y_ROUND_DECIMALS
    scaled = np.array([n.y for n in nodes], dtype=float) * scale_y * factor
    rounded = np.sign(scaled) * np.floor(np.abs(scaled) + 0.5) / factor
    return [replace(node, y=float(y)) for node, y in zip(nodes, rounded)]


def build_view_config(index: TreeIndex) -> Config:
    """
    Derive the initial viewer configuration for a loaded tree.

    Centres the view on the layout bounds, keeps an explicit zoom from the
    export (or uses the default) and attaches root and catalog data.
    """
    config = index.metadata.config
    updates: Dict[str, Any] = {
        "initial_zoom": (
            config.initial_zoom
            if config.initial_zoom is not None
            else DEFAULT_INITIAL_ZOOM
        ),
        "num_nodes": len(index.nodes),
        "root_mutations": list(index.root_mutations),
        "root_id": index.root_id,
        "mutations": list(index.metadata.mutations),
        "keys_to_display": list(DEFAULT_KEYS_TO_DISPLAY),
    }
    if index.nodes:
        min_y, max_y, min_x, max_x = calculate_extremes(index.nodes)
        updates["initial_x"] = (max_x + min_x) / 2.0
        updates["initial_y"] = (max_y + min_y) / 2.0
    return replace(config, **updates)


def prepare_view(file_path: Path | str) -> Tuple[TreeIndex, Config]:
    """Load an export, scale its layout and derive the viewer configuration."""
    index = load_tree(file_path)
    index.nodes = scale_y_coordinates(index.nodes)
    return index, build_view_config(index)


def ancestors_of(index: TreeIndex, node_ids: Iterable[int]) -> List[int]:
    """
    Close a selection of node ids under the parent relation.

    Returns:
        Ids of the selected nodes and all their ancestors, in input order.
    """
    selected: Set[int] = set(node_ids)
    to_process = list(selected)
    while to_process:
        parent_id = index.child_to_parent.get(to_process.pop())
        if parent_id is not None and parent_id not in selected:
            selected.add(parent_id)
            to_process.append(parent_id)
    return [node.node_id for node in index.nodes if node.node_id in selected]
