"""Tests for the line-oriented fallback parser."""

from pathlib import Path

import pytest

from yang_schema_api.fallback_parser import FallbackParser, parse_fallback

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "yang"

SCENARIO_A = 'module m { namespace "urn:x"; prefix "m"; container c { leaf l { type string; } } }'


def _read(name):
    return (FIXTURES / name).read_text(encoding="utf-8")


def test_single_line_module_builds_tree():
    result = parse_fallback(SCENARIO_A, "m.yang")

    assert result.valid is True
    assert result.errors == []
    assert result.parser_used == "fallback"
    assert [m.name for m in result.modules] == ["m"]
    module = result.tree["m"]
    assert [(c.type, c.name) for c in module.children] == [("container", "c")]
    assert [(g.type, g.name) for g in module.children[0].children] == [("leaf", "l")]
    assert module.children[0].children[0].properties["type"] == "string"


def test_missing_closing_braces_reports_depth():
    content = 'module m { namespace "urn:x"; prefix "m"; container c { leaf l { type string; }'
    result = parse_fallback(content, "m.yang")

    assert result.valid is False
    messages = [e.message for e in result.errors]
    assert "Unmatched braces detected. Depth: 2" in messages
    assert result.modules[0].find("c/l") is not None


def test_extra_closing_brace_reports_negative_depth():
    result = parse_fallback("module m {\n  leaf a { type string; }\n}\n}\n")
    assert result.valid is False
    assert any("Depth: -1" in e.message for e in result.errors)


def test_empty_input():
    result = parse_fallback("")

    assert result.valid is False
    assert result.modules == []
    assert result.tree == {}
    assert [(e.line, e.message) for e in result.errors] == [
        (1, "No module or submodule declaration found")
    ]


def test_document_without_module_keyword():
    result = parse_fallback("container c {\n  leaf l { type string; }\n}\n")
    assert result.valid is False
    assert "No module or submodule declaration found" in [e.message for e in result.errors]


@pytest.mark.parametrize(
    "name",
    ["example-system.yang", "module-a.yang", "module-b.yang", "example-parent.yang", "example-sub.yang"],
)
def test_well_formed_fixtures_are_valid(name):
    result = parse_fallback(_read(name), name)
    assert result.valid is True
    assert result.errors == []
    assert len(result.modules) == 1


def test_unbalanced_fixture_error_is_on_last_line():
    content = _read("broken.yang")
    result = parse_fallback(content, "broken.yang")

    assert result.valid is False
    error = result.errors[0]
    assert error.message == "Unmatched braces detected. Depth: 2"
    assert error.line == content.count("\n") + 1


def test_fixture_tree_shape_and_properties():
    result = parse_fallback(_read("example-system.yang"), "example-system.yang")
    module = result.tree["example-system"]

    assert [(c.type, c.name) for c in module.children] == [
        ("container", "system"),
        ("container", "state"),
        ("rpc", "reboot"),
        ("notification", "restarted"),
    ]
    system = module.find("system")
    assert system.description == "System parameters."
    assert [c.name for c in system.children] == ["hostname", "port", "interface", "dns-server"]

    hostname = system.find("hostname")
    assert hostname.line == 21
    assert hostname.mandatory is True
    assert hostname.description == "Host name of the device."
    assert hostname.properties == {"type": "string", "length": "1..64"}

    port = system.find("port")
    assert port.properties["type"] == "uint16"
    assert port.properties["range"] == "1..65535"
    assert port.properties["default"] == "830"
    assert port.properties["units"] == "port"

    interface = system.find("interface")
    assert interface.type == "list"
    assert interface.properties["key"] == "name"
    assert [c.name for c in interface.children] == ["name", "mtu"]

    assert system.find("dns-server").type == "leaf-list"
    assert module.find("state").config is False
    assert module.find("state/uptime").config is True
    assert module.find("reboot/input/delay").type == "leaf"


def test_leaf_body_does_not_close_parent_container():
    content = (
        "module m {\n"
        "  container c {\n"
        "    leaf a {\n"
        "      type string;\n"
        "    }\n"
        "    leaf b {\n"
        "      type string;\n"
        "    }\n"
        "  }\n"
        "  leaf top { type string; }\n"
        "}\n"
    )
    module = parse_fallback(content).modules[0]
    assert [c.name for c in module.find("c").children] == ["a", "b"]
    assert [c.name for c in module.children] == ["c", "top"]


def test_header_and_metadata_statements():
    result = parse_fallback(_read("example-system.yang"), "example-system.yang")
    module = result.modules[0]

    assert module.properties["namespace"] == "urn:example:system"
    assert module.properties["prefix"] == "sys"
    assert module.properties["yang-version"] == "1.1"
    assert module.properties["organization"] == "Example Networks"
    assert module.description == "System configuration for a small network device."
    assert result.metadata.revisions == ["2024-03-01", "2023-11-15"]
    assert result.metadata.imports == []


def test_import_include_and_belongs_to():
    imports = parse_fallback(_read("module-b.yang"), "module-b.yang")
    assert imports.metadata.imports == ["module-a"]

    parent = parse_fallback(_read("example-parent.yang"), "example-parent.yang")
    assert parent.metadata.includes == ["example-sub"]

    sub = parse_fallback(_read("example-sub.yang"), "example-sub.yang")
    root = sub.modules[0]
    assert root.type == "submodule"
    assert root.properties["belongs-to"] == "example-parent"
    assert root.properties["prefix"] == "par"
    assert root.find("extras/note").type == "leaf"


def test_typedef_restrictions_do_not_leak_onto_module():
    module = parse_fallback(_read("module-a.yang")).modules[0]
    assert "range" not in module.properties
    assert "type" not in module.properties


def test_duplicate_imports_are_preserved():
    content = "module m {\n  import x { prefix x; }\n  import x { prefix x2; }\n}\n"
    assert parse_fallback(content).metadata.imports == ["x", "x"]


def test_parsing_is_idempotent():
    content = _read("example-system.yang")
    parser = FallbackParser()
    first = parser.parse(content, "example-system.yang")
    second = parser.parse(content, "example-system.yang")
    assert first.to_dict() == second.to_dict()


def test_tokenizer_failure_becomes_diagnostic():
    class ExplodingTokenizer:
        def tokenize(self, content):
            raise RuntimeError("boom")

    result = FallbackParser(tokenizer=ExplodingTokenizer()).parse("module m { }")
    assert result.valid is False
    assert [(e.line, e.message) for e in result.errors] == [(1, "Parse error: boom")]


def test_unterminated_string_is_an_error():
    result = parse_fallback('module m {\n  description "open\n}\n')
    assert result.valid is False
    assert any(e.message == "Unterminated string literal starting at line 2" for e in result.errors)
