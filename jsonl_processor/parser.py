"""Parsing of the metadata line and the node lines of a tree export."""

import json
import logging
import math
from typing import Any, Iterator, Tuple

from .config import Settings
from .exceptions import EmptyInputError, SchemaError
from .models import Metadata, Node

logger = logging.getLogger(__name__)

NumberedLine = Tuple[int, str]


def _reject_constant(literal: str) -> Any:
    raise SchemaError(f"malformed JSON: {literal} is not a JSON value")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise SchemaError(f"malformed JSON: number {literal} is out of range")
    return value


def parse_json_line(text: str, line_number: int) -> Any:
    """
    Decode one line of strict JSON, reporting failures against ``line_number``.

    ``NaN``, ``Infinity`` and numbers that overflow a double are rejected.
    """
    try:
        return json.loads(
            text, parse_constant=_reject_constant, parse_float=_finite_float
        )
    except SchemaError as e:
        raise e.at_line(line_number) from e
    except json.JSONDecodeError as e:
        raise SchemaError(
            f"malformed JSON: {e.msg} (column {e.colno})", line_number=line_number
        ) from e
    except (ValueError, RecursionError) as e:
        # Over-long integer literals and over-deep nesting
        raise SchemaError(f"malformed JSON: {e}", line_number=line_number) from e


def parse_metadata_line(text: str, line_number: int = 1) -> Metadata:
    """
    Parse the header line of a tree export.

    Raises:
        SchemaError: If the line is not JSON or a required field is missing
            or has the wrong type.
    """
    data = parse_json_line(text, line_number)
    try:
        return Metadata.from_dict(data)
    except SchemaError as e:
        raise e.at_line(line_number) from e


def parse_node_line(text: str, line_number: int) -> Node:
    """Parse a single node line."""
    data = parse_json_line(text, line_number)
    try:
        return Node.from_dict(data)
    except SchemaError as e:
        raise e.at_line(line_number) from e


def read_metadata(lines: Iterator[NumberedLine]) -> Metadata:
    """
    Consume exactly one line from ``lines`` and parse it as metadata.

    Raises:
        EmptyInputError: If there is no first line.
    """
    first = next(lines, None)
    if first is None:
        raise EmptyInputError("Empty file: no metadata line")
    line_number, text = first
    return parse_metadata_line(text, line_number)


def iter_nodes(lines: Iterator[NumberedLine]) -> Iterator[Node]:
    """
    Lazily parse every remaining line as a node.

    The first malformed line raises ``SchemaError`` and ends the stream.
    """
    count = 0
    for line_number, text in lines:
        yield parse_node_line(text, line_number)
        count += 1
        if count % Settings.PROGRESS_INTERVAL == 0:
            logger.info(f"Processed {count} nodes")
