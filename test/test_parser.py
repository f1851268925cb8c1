import io
import json
import logging

import pytest

from jsonl_processor.config import Settings
from jsonl_processor.exceptions import EmptyInputError, SchemaError
from jsonl_processor.models import Node
from jsonl_processor.parser import (
    iter_nodes,
    parse_metadata_line,
    parse_node_line,
    read_metadata,
)
from jsonl_processor.pipeline import analyze


def _numbered(*texts):
    return iter(enumerate(texts, 1))


def test_read_metadata_consumes_exactly_one_line(metadata_dict, node_dicts):
    lines = _numbered(json.dumps(metadata_dict), json.dumps(node_dicts[0]))
    metadata = read_metadata(lines)
    assert metadata.version == "1.0"
    assert next(lines)[0] == 2


def test_read_metadata_on_empty_input():
    with pytest.raises(EmptyInputError):
        read_metadata(iter([]))


def test_malformed_metadata_line_reports_line_one():
    with pytest.raises(SchemaError) as excinfo:
        parse_metadata_line('{"version": "1.0",')
    assert excinfo.value.line_number == 1
    assert "malformed JSON" in str(excinfo.value)


def test_metadata_schema_error_carries_line_and_field(metadata_dict):
    metadata_dict["total_nodes"] = "five"
    with pytest.raises(SchemaError) as excinfo:
        parse_metadata_line(json.dumps(metadata_dict))
    assert excinfo.value.line_number == 1
    assert excinfo.value.field == "total_nodes"
    assert str(excinfo.value).startswith("line 1, field 'total_nodes'")


def test_parse_node_line(node_dicts):
    node = parse_node_line(json.dumps(node_dicts[2]), 4)
    assert isinstance(node, Node)
    assert node.name == "A"


def test_metadata_line_is_not_a_node(metadata_dict):
    with pytest.raises(SchemaError) as excinfo:
        parse_node_line(json.dumps(metadata_dict), 2)
    assert excinfo.value.line_number == 2


def test_iter_nodes_is_lazy_and_stops_at_first_bad_line(node_dicts):
    lines = iter(
        [
            (2, json.dumps(node_dicts[0])),
            (3, json.dumps(node_dicts[1])),
            (4, "{not json"),
            (5, json.dumps(node_dicts[2])),
        ]
    )
    nodes = iter_nodes(lines)
    assert next(nodes).node_id == 0
    assert next(nodes).node_id == 1
    with pytest.raises(SchemaError) as excinfo:
        next(nodes)
    assert excinfo.value.line_number == 4


def test_blank_node_line_is_malformed(node_dicts):
    lines = iter([(2, json.dumps(node_dicts[0])), (3, "")])
    with pytest.raises(SchemaError) as excinfo:
        list(iter_nodes(lines))
    assert excinfo.value.line_number == 3


def test_progress_is_logged(monkeypatch, caplog, make_node):
    monkeypatch.setattr(Settings, "PROGRESS_INTERVAL", 2)
    lines = iter((i + 2, json.dumps(make_node(i, 0))) for i in range(5))
    with caplog.at_level(logging.INFO, logger="jsonl_processor.parser"):
        nodes = list(iter_nodes(lines))
    assert len(nodes) == 5
    progress = [r.getMessage() for r in caplog.records if "Processed" in r.getMessage()]
    assert progress == ["Processed 2 nodes", "Processed 4 nodes"]


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e400"])
def test_non_finite_numbers_are_rejected(
    literal, make_node, write_jsonl, metadata_dict
):
    record = json.dumps(make_node(7, 1))
    record = record.replace('"x_dist": 0.0', f'"x_dist": {literal}')
    assert literal in record
    with pytest.raises(SchemaError, match="malformed JSON") as excinfo:
        parse_node_line(record, 3)
    assert excinfo.value.line_number == 3

    path = write_jsonl("tree.jsonl", [metadata_dict, record])
    with pytest.raises(SchemaError) as excinfo:
        analyze(path, io.StringIO())
    assert excinfo.value.line_number == 2


def test_over_long_integer_literal_is_rejected(make_node):
    record = json.dumps(make_node(7, 1))
    record = record.replace('"num_tips": 1', '"num_tips": 1' + "0" * 5000)
    with pytest.raises(SchemaError) as excinfo:
        parse_node_line(record, 5)
    assert excinfo.value.line_number == 5


def test_over_deep_nesting_is_malformed():
    with pytest.raises(SchemaError, match="malformed JSON") as excinfo:
        parse_node_line("[" * 200_000, 6)
    assert excinfo.value.line_number == 6


def test_integer_overflowing_a_double_names_the_field(make_node):
    record = json.dumps(make_node(7, 1))
    record = record.replace('"x_dist": 0.0', '"x_dist": 1' + "0" * 400)
    with pytest.raises(SchemaError) as excinfo:
        parse_node_line(record, 2)
    assert excinfo.value.line_number == 2
    assert excinfo.value.field == "x_dist"
