"""Tests for model reply parsing."""

from __future__ import annotations

import logging

import pytest

from motion_studio_mcp.errors import ParseError
from motion_studio_mcp.parser import parse_properties, parse_response
from tests.conftest import SAMPLE_CODE, SAMPLE_CSS, delimited_reply


class TestDelimitedBlocks:
    def test_full_reply(self, sample_reply):
        result = parse_response(sample_reply)
        assert result.code == SAMPLE_CODE
        assert result.stylesheet == SAMPLE_CSS
        assert result.explanation == "A spinning square."
        assert [p.id for p in result.parameters] == [
            "primaryColor", "size", "speed", "showGlow", "easing",
        ]

    @pytest.mark.parametrize("prefix,suffix", [
        ("", ""),
        ("Here you go!\n", "\nEnjoy."),
        ("```\nnot code\n```\n", "\n[CODE]second[/CODE]"),
        ("[CSS]\n.a{}\n[/CSS]\n", ""),
    ])
    def test_code_is_trimmed_interior_regardless_of_surroundings(self, prefix, suffix):
        raw = f"{prefix}[CODE]\n\n  const x = 1;\n\t\n[/CODE]{suffix}"
        assert parse_response(raw).code == "const x = 1;"

    def test_missing_css_gives_empty_stylesheet(self):
        result = parse_response("[CODE]\nfunction Animation() {}\n[/CODE]")
        assert result.stylesheet == ""
        assert result.explanation is None
        assert result.parameters == []

    def test_invalid_properties_json_keeps_code(self, caplog):
        raw = delimited_reply(properties="[{not json")
        with caplog.at_level(logging.WARNING, logger="motion_studio_mcp.parser"):
            result = parse_response(raw)
        assert result.code == SAMPLE_CODE
        assert result.stylesheet == SAMPLE_CSS
        assert result.parameters == []
        assert "Failed to parse properties" in caplog.text

    @pytest.mark.parametrize("properties", [
        '{"id": "size"}',
        '[{"id": "size", "label": "Size", "type": "number", "value": "big"}]',
        '[{"id": "on", "label": "On", "type": "boolean", "value": 1}]',
        '[{"id": "a", "label": "A", "type": "color", "value": "#fff"},'
        ' {"id": "a", "label": "A2", "type": "color", "value": "#000"}]',
        '[{"label": "No id", "type": "color", "value": "#fff"}]',
    ])
    def test_schema_violations_degrade_to_no_parameters(self, properties):
        result = parse_response(delimited_reply(properties=properties))
        assert result.code == SAMPLE_CODE
        assert result.parameters == []

    def test_empty_code_block_falls_through(self):
        raw = "[CODE]\n   \n[/CODE]\n```jsx\nconst a = 1;\n```"
        assert parse_response(raw).code == "const a = 1;"


class TestPropertyValues:
    def test_literal_json_types_preserved(self, sample_reply):
        params = {p.id: p for p in parse_response(sample_reply).parameters}
        assert params["size"].value == 100
        assert isinstance(params["size"].value, int)
        assert params["showGlow"].value is True
        assert params["primaryColor"].value == "#6366f1"
        assert params["speed"].min == 0.5

    def test_select_options_keep_order(self, sample_reply):
        params = {p.id: p for p in parse_response(sample_reply).parameters}
        assert params["easing"].options == ["linear", "ease-in", "ease-out", "ease-in-out"]

    def test_unknown_type_passes_through(self):
        props = parse_properties(
            '[PROPERTIES][{"id": "curve", "label": "Curve", "type": "bezier", "value": "0,0,1,1"}][/PROPERTIES]'
        )
        assert len(props) == 1
        assert props[0].type == "bezier"
        assert props[0].is_known_type is False

    def test_absent_block(self):
        assert parse_properties("no properties here") == []


class TestFencedBlocks:
    def test_css_and_source_fences(self):
        raw = (
            "Explanation first.\n"
            "```jsx\nfunction Animation() { return null; }\n```\n"
            "```CSS\n.a { color: red; }\n```"
        )
        result = parse_response(raw)
        assert result.code == "function Animation() { return null; }"
        assert result.stylesheet == ".a { color: red; }"
        assert result.explanation == "Explanation first."

    def test_last_source_block_wins(self):
        raw = "```js\nconst first = 1;\n```\ntext\n```\nconst second = 2;\n```"
        assert parse_response(raw).code == "const second = 2;"

    def test_untagged_fence_keeps_first_line_with_code(self):
        raw = "```const a = 1;\nconst b = 2;\n```"
        assert parse_response(raw).code == "const a = 1;\nconst b = 2;"

    def test_only_css_fences_fall_through(self):
        raw = "```css\n.a {}\n```\nfunction Animation() {\n  return null;\n}\n"
        result = parse_response(raw)
        assert result.code == "function Animation() {\n  return null;\n}"
        assert result.stylesheet == ""

    def test_empty_fences_skipped(self):
        raw = "```jsx\nconst real = 1;\n```\n```\n\n```"
        assert parse_response(raw).code == "const real = 1;"

    def test_properties_honoured_with_fences(self):
        raw = (
            "```jsx\nconst PARAMS = { size: 10 };\n```\n"
            '[PROPERTIES][{"id": "size", "label": "Size", "type": "number", "value": 10}][/PROPERTIES]'
        )
        result = parse_response(raw)
        assert [p.id for p in result.parameters] == ["size"]


class TestBareFunction:
    def test_extracts_up_to_closing_brace_line(self):
        raw = (
            "Sure, here it is:\n"
            "function Animation() {\n"
            "  if (x) {\n"
            "    return 1;\n"
            "  }\n"
            "  return null;\n"
            "}\n"
            "Hope that helps."
        )
        result = parse_response(raw)
        assert result.code.startswith("function Animation() {")
        assert result.code.endswith("  return null;\n}")
        assert result.stylesheet == ""
        assert result.explanation is None

    def test_other_function_names_ignored(self):
        with pytest.raises(ParseError):
            parse_response("function Animator() {\n  return 1;\n}\n")


class TestParseFailure:
    @pytest.mark.parametrize("raw", [
        "",
        "I cannot help with that.",
        "[CODE][/CODE]",
        "```css\n.a{}\n```",
    ])
    def test_no_code_raises(self, raw):
        with pytest.raises(ParseError) as excinfo:
            parse_response(raw)
        assert excinfo.value.raw_text == raw
        assert excinfo.value.reason == "no code found"
        assert "did not return code" in str(excinfo.value)

    def test_failure_logs_preview(self, caplog):
        with caplog.at_level(logging.ERROR, logger="motion_studio_mcp.parser"):
            with pytest.raises(ParseError):
                parse_response("x" * 2000)
        assert "Failed to parse reply" in caplog.text
        assert "x" * 801 not in caplog.text
