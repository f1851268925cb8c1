import gzip
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pytest

from jsonl_processor.logging_config import configure_logging


def pytest_configure(config):
    """Set up test environment before tests run."""
    # Install the console handler once, on the session-wide stderr
    configure_logging("DEBUG")


AA_MUTATION = {
    "gene": "S",
    "previous_residue": "D",
    "residue_pos": 614,
    "new_residue": "G",
    "mutation_id": 0,
    "nuc_for_codon": 23403,
    "type": "aa",
}

NT_MUTATIONS = [
    {
        "gene": "nt",
        "previous_residue": "C",
        "residue_pos": 241,
        "new_residue": "T",
        "mutation_id": 1,
        "type": "nt",
    },
    {
        "gene": "nt",
        "previous_residue": "A",
        "residue_pos": 23403,
        "new_residue": "G",
        "mutation_id": 2,
        "type": "nt",
    },
]


def _node(
    node_id: int,
    parent_id: int,
    name: str = "",
    x_dist: float = 0.0,
    y: float = 0.0,
    mutations: List[int] | None = None,
    num_tips: int = 1,
    **extra: Any,
) -> Dict[str, Any]:
    node = {
        "name": name,
        "x_dist": x_dist,
        "y": y,
        "mutations": mutations or [],
        "meta_genbank_accession": f"MW{node_id:06d}",
        "meta_date": "2021-03-01",
        "meta_country": "UK",
        "meta_pangolin_lineage": "B.1.1.7",
        "parent_id": parent_id,
        "node_id": node_id,
        "num_tips": num_tips,
        "clades": {"pango": "B.1.1.7", "nextstrain": "20I"},
    }
    node.update(extra)
    return node


@pytest.fixture
def make_node() -> Callable[..., Dict[str, Any]]:
    """Factory for node-line dictionaries with sensible meta fields."""
    return _node


@pytest.fixture
def metadata_dict() -> Dict[str, Any]:
    return {
        "version": "1.0",
        "mutations": [AA_MUTATION, *NT_MUTATIONS],
        "total_nodes": 5,
        "config": {
            "gene_details": {
                "S": {"name": "S", "strand": 1, "start": 21563, "end": 25384},
                "ORF1ab": {"name": "ORF1ab", "strand": 1, "start": 266, "end": 21555},
            },
            "num_tips": 3,
        },
    }


@pytest.fixture
def node_dicts() -> List[Dict[str, Any]]:
    """
    Creates root(0) -> (internal(1) -> (A(2), B(3)), C(4)).
    """
    return [
        _node(0, 0, name="root", x_dist=0.0, y=1.5, mutations=[0], num_tips=3),
        _node(1, 0, name="", x_dist=0.5, y=1.0, mutations=[1, 2], num_tips=2),
        _node(2, 1, name="A", x_dist=1.25, y=0.0, num_tips=1),
        _node(3, 1, name="B", x_dist=2.0, y=2.0, mutations=[2], num_tips=1),
        _node(4, 0, name="C", x_dist=0.75, y=3.0, mutations=[1], num_tips=1),
    ]


@pytest.fixture
def write_jsonl(tmp_path: Path) -> Callable[[str, List[Union[str, Dict[str, Any]]]], Path]:
    """Write records (dicts are JSON-encoded, strings are written verbatim) one per line."""

    def _write(name: str, records: List[Union[str, Dict[str, Any]]]) -> Path:
        path = tmp_path / name
        lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
        content = "".join(line + "\n" for line in lines)
        if name.endswith(".gz"):
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_export(write_jsonl, metadata_dict, node_dicts) -> Path:
    return write_jsonl("tree.jsonl", [metadata_dict, *node_dicts])


EXPECTED_REPORT = """\
Metadata:
Version: 1.0
Total nodes: 5
Number of tips: 3
Number of mutations: 3
Number of AA mutations: 1
Number of NT mutations: 2

Node Data Analysis:
Total nodes: 5
Total mutations in nodes: 5
Max x_dist: 2.0
Min x_dist: 0.0
Root node: root (id 0)
Average number of tips per node: 1.60
"""


@pytest.fixture
def expected_report() -> str:
    return EXPECTED_REPORT


@pytest.fixture
def aa_mutation() -> Dict[str, Any]:
    return dict(AA_MUTATION)


@pytest.fixture
def nt_mutation() -> Dict[str, Any]:
    return dict(NT_MUTATIONS[0])
