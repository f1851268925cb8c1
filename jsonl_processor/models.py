"""Data models for tree export records.

Every record is an immutable dataclass with a ``from_dict`` constructor that
validates the decoded JSON object and a ``to_dict`` method that re-serializes
it to the same shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from .constants import INT32_MAX, INT32_MIN, NAMED_META_FIELDS, UINT64_MAX
from .exceptions import SchemaError

T = TypeVar("T")


# ===================================================================
# 1. FIELD CHECKS
# ===================================================================


def _expect_object(data: Any, record: str) -> Mapping[str, Any]:
    if not isinstance(data, dict):
        raise SchemaError(f"{record} must be a JSON object, got {type(data).__name__}")
    return data


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise SchemaError("missing required field", field=key)
    return data[key]


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise SchemaError(f"expected string, got {type(value).__name__}", field=key)
    return value


def _integer(value: Any, key: str) -> int:
    # bool is a subclass of int but never a valid integer field
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"expected integer, got {type(value).__name__}", field=key)
    return value


def _as_int(value: Any, key: str) -> int:
    """Signed 32-bit integer (ids, tip counts, strand)."""
    value = _integer(value, key)
    if not INT32_MIN <= value <= INT32_MAX:
        raise SchemaError(
            f"integer out of range [{INT32_MIN}, {INT32_MAX}]", field=key
        )
    return value


def _as_uint(value: Any, key: str) -> int:
    """Unsigned 64-bit integer (positions, sizes)."""
    value = _integer(value, key)
    if value < 0:
        raise SchemaError("expected non-negative integer", field=key)
    if value > UINT64_MAX:
        raise SchemaError(f"integer out of range [0, {UINT64_MAX}]", field=key)
    return value


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"expected number, got {type(value).__name__}", field=key)
    try:
        return float(value)
    except OverflowError as e:
        raise SchemaError("number too large for a double", field=key) from e


def _as_list(value: Any, key: str, item: Callable[[Any, str], T]) -> List[T]:
    if not isinstance(value, list):
        raise SchemaError(f"expected array, got {type(value).__name__}", field=key)
    return [item(v, key) for v in value]


def _as_str_map(value: Any, key: str) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise SchemaError(f"expected object, got {type(value).__name__}", field=key)
    return {k: _as_str(v, f"{key}.{k}") for k, v in value.items()}


def _optional(
    data: Mapping[str, Any], key: str, check: Callable[[Any, str], T]
) -> Optional[T]:
    value = data.get(key)
    if value is None:
        return None
    return check(value, key)


# ===================================================================
# 2. MUTATIONS
# ===================================================================


@dataclass(frozen=True)
class _MutationFields:
    gene: str
    previous_residue: str
    residue_pos: int
    new_residue: str
    mutation_id: int
    mutation_type: str

    @staticmethod
    def _common(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "gene": _as_str(_require(data, "gene"), "gene"),
            "previous_residue": _as_str(
                _require(data, "previous_residue"), "previous_residue"
            ),
            "residue_pos": _as_uint(_require(data, "residue_pos"), "residue_pos"),
            "new_residue": _as_str(_require(data, "new_residue"), "new_residue"),
            "mutation_id": _as_uint(_require(data, "mutation_id"), "mutation_id"),
            "mutation_type": _as_str(_require(data, "type"), "type"),
        }


@dataclass(frozen=True)
class AminoAcidMutation(_MutationFields):
    """A residue change inside a coding gene, located by its codon nucleotide."""

    nuc_for_codon: int

    @classmethod
    def from_dict(cls, data: Any) -> "AminoAcidMutation":
        data = _expect_object(data, "mutation")
        return cls(
            nuc_for_codon=_as_uint(_require(data, "nuc_for_codon"), "nuc_for_codon"),
            **cls._common(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gene": self.gene,
            "previous_residue": self.previous_residue,
            "residue_pos": self.residue_pos,
            "new_residue": self.new_residue,
            "mutation_id": self.mutation_id,
            "nuc_for_codon": self.nuc_for_codon,
            "type": self.mutation_type,
        }


@dataclass(frozen=True)
class NucleotideMutation(_MutationFields):
    """A single-nucleotide change; carries no codon position."""

    @classmethod
    def from_dict(cls, data: Any) -> "NucleotideMutation":
        data = _expect_object(data, "mutation")
        return cls(**cls._common(data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gene": self.gene,
            "previous_residue": self.previous_residue,
            "residue_pos": self.residue_pos,
            "new_residue": self.new_residue,
            "mutation_id": self.mutation_id,
            "type": self.mutation_type,
        }


Mutation = Union[AminoAcidMutation, NucleotideMutation]

# Order matters: both shapes share every nucleotide field, so the richer
# amino-acid shape has to be tried first.
MUTATION_VARIANTS: Tuple[Type[Any], ...] = (AminoAcidMutation, NucleotideMutation)


def parse_mutation(data: Any, key: str = "mutations") -> Mutation:
    """
    Decode one mutation record by trying each variant shape in order.

    Args:
        data: Decoded JSON value for the mutation
        key: Field path used in error messages

    Returns:
        The first variant whose shape matches

    Raises:
        SchemaError: If no variant matches
    """
    failures = []
    for variant in MUTATION_VARIANTS:
        try:
            return variant.from_dict(data)
        except SchemaError as e:
            failures.append(f"{variant.__name__}: {e}")
    raise SchemaError(
        "data did not match any mutation variant (" + "; ".join(failures) + ")",
        field=key,
    )


# ===================================================================
# 3. METADATA
# ===================================================================


@dataclass(frozen=True)
class GeneDetail:
    """Coordinates of one gene on the reference genome."""

    name: str
    strand: int
    start: int
    end: int

    @classmethod
    def from_dict(cls, data: Any) -> "GeneDetail":
        data = _expect_object(data, "gene detail")
        return cls(
            name=_as_str(_require(data, "name"), "name"),
            strand=_as_int(_require(data, "strand"), "strand"),
            start=_as_uint(_require(data, "start"), "start"),
            end=_as_uint(_require(data, "end"), "end"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "strand": self.strand,
            "start": self.start,
            "end": self.end,
        }


@dataclass(frozen=True)
class Config:
    """
    Tree-level configuration from the metadata line.

    Only ``gene_details`` and ``num_tips`` are required. The remaining fields
    are the viewer settings some exports carry; they are ``None`` (or empty)
    when absent.
    """

    gene_details: Dict[str, GeneDetail]
    num_tips: int
    mutations: List[Mutation] = field(default_factory=list)
    initial_x: Optional[float] = None
    initial_y: Optional[float] = None
    initial_zoom: Optional[float] = None
    keys_to_display: Optional[List[str]] = None
    num_nodes: Optional[int] = None
    root_mutations: Optional[List[int]] = None
    root_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        data = _expect_object(data, "config")
        raw_genes = _require(data, "gene_details")
        if not isinstance(raw_genes, dict):
            raise SchemaError(
                f"expected object, got {type(raw_genes).__name__}", field="gene_details"
            )
        gene_details = {}
        for gene, detail in raw_genes.items():
            try:
                gene_details[gene] = GeneDetail.from_dict(detail)
            except SchemaError as e:
                path = f"gene_details.{gene}" + (f".{e.field}" if e.field else "")
                raise SchemaError(e.reason, field=path) from e

        raw_mutations = data.get("mutations")
        return cls(
            gene_details=gene_details,
            num_tips=_as_uint(_require(data, "num_tips"), "num_tips"),
            mutations=(
                []
                if raw_mutations is None
                else _as_list(raw_mutations, "config.mutations", parse_mutation)
            ),
            initial_x=_optional(data, "initial_x", _as_float),
            initial_y=_optional(data, "initial_y", _as_float),
            initial_zoom=_optional(data, "initial_zoom", _as_float),
            keys_to_display=_optional(
                data, "keys_to_display", lambda v, k: _as_list(v, k, _as_str)
            ),
            num_nodes=_optional(data, "num_nodes", _as_uint),
            root_mutations=_optional(
                data, "root_mutations", lambda v, k: _as_list(v, k, _as_int)
            ),
            root_id=_optional(data, "root_id", _as_int),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "gene_details": {k: v.to_dict() for k, v in self.gene_details.items()},
            "num_tips": self.num_tips,
        }
        if self.mutations:
            out["mutations"] = [m.to_dict() for m in self.mutations]
        optional = {
            "initial_x": self.initial_x,
            "initial_y": self.initial_y,
            "initial_zoom": self.initial_zoom,
            "keys_to_display": self.keys_to_display,
            "num_nodes": self.num_nodes,
            "root_mutations": self.root_mutations,
            "root_id": self.root_id,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out


@dataclass(frozen=True)
class Metadata:
    """The header record on the first line of a tree export."""

    version: str
    mutations: List[Mutation]
    total_nodes: int
    config: Config

    @classmethod
    def from_dict(cls, data: Any) -> "Metadata":
        data = _expect_object(data, "metadata")
        return cls(
            version=_as_str(_require(data, "version"), "version"),
            mutations=_as_list(_require(data, "mutations"), "mutations", parse_mutation),
            total_nodes=_as_uint(_require(data, "total_nodes"), "total_nodes"),
            config=Config.from_dict(_require(data, "config")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "mutations": [m.to_dict() for m in self.mutations],
            "total_nodes": self.total_nodes,
            "config": self.config.to_dict(),
        }

    @property
    def amino_acid_mutations(self) -> List[AminoAcidMutation]:
        return [m for m in self.mutations if isinstance(m, AminoAcidMutation)]

    @property
    def nucleotide_mutations(self) -> List[NucleotideMutation]:
        return [m for m in self.mutations if isinstance(m, NucleotideMutation)]


# ===================================================================
# 4. NODES
# ===================================================================

_NODE_FIELDS = (
    "name",
    "x_dist",
    "y",
    "mutations",
    *NAMED_META_FIELDS,
    "parent_id",
    "node_id",
    "num_tips",
    "clades",
)


@dataclass(frozen=True)
class Node:
    """
    One vertex of the tree as exported on a node line.

    ``mutations`` holds ids into the metadata mutation catalog. Keys not
    listed as fields are kept in ``extra`` so the record round-trips.
    """

    name: str
    x_dist: float
    y: float
    mutations: List[int]
    meta_genbank_accession: str
    meta_date: str
    meta_country: str
    meta_pangolin_lineage: str
    parent_id: int
    node_id: int
    num_tips: int
    clades: Dict[str, str]
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Node":
        data = _expect_object(data, "node")
        return cls(
            name=_as_str(_require(data, "name"), "name"),
            x_dist=_as_float(_require(data, "x_dist"), "x_dist"),
            y=_as_float(_require(data, "y"), "y"),
            mutations=_as_list(_require(data, "mutations"), "mutations", _as_int),
            meta_genbank_accession=_as_str(
                _require(data, "meta_genbank_accession"), "meta_genbank_accession"
            ),
            meta_date=_as_str(_require(data, "meta_date"), "meta_date"),
            meta_country=_as_str(_require(data, "meta_country"), "meta_country"),
            meta_pangolin_lineage=_as_str(
                _require(data, "meta_pangolin_lineage"), "meta_pangolin_lineage"
            ),
            parent_id=_as_int(_require(data, "parent_id"), "parent_id"),
            node_id=_as_int(_require(data, "node_id"), "node_id"),
            num_tips=_as_int(_require(data, "num_tips"), "num_tips"),
            clades=_as_str_map(_require(data, "clades"), "clades"),
            extra={k: v for k, v in data.items() if k not in _NODE_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "x_dist": self.x_dist,
            "y": self.y,
            "mutations": list(self.mutations),
            "meta_genbank_accession": self.meta_genbank_accession,
            "meta_date": self.meta_date,
            "meta_country": self.meta_country,
            "meta_pangolin_lineage": self.meta_pangolin_lineage,
            "parent_id": self.parent_id,
            "node_id": self.node_id,
            "num_tips": self.num_tips,
            "clades": dict(self.clades),
        }
        out.update(self.extra)
        return out

    def is_root(self) -> bool:
        """A root node is its own parent."""
        return self.parent_id == self.node_id
