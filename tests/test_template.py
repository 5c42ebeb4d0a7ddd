"""Tests for body-template nodes."""

from __future__ import annotations

from zeyapi.template import (
    ListNode,
    Literal,
    ObjectNode,
    Placeholder,
    parse_template,
    placeholder_names,
    to_data,
)


class TestParseTemplate:
    def test_scalars_are_literals(self) -> None:
        assert parse_template(5) == Literal(5)
        assert parse_template(None) == Literal(None)
        assert parse_template(True) == Literal(True)
        assert parse_template("plain") == Literal("plain")

    def test_placeholder_leaf(self) -> None:
        assert parse_template("{name}") == Placeholder("name")

    def test_partial_braces_are_literal(self) -> None:
        assert parse_template("Hello {name}") == Literal("Hello {name}")
        assert parse_template("{}") == Literal("{}")

    def test_trailing_newline_is_literal(self) -> None:
        assert parse_template("{id}\n") == Literal("{id}\n")
        assert parse_template("\n{id}") == Literal("\n{id}")

    def test_nested_structure(self) -> None:
        node = parse_template({"a": ["{x}", 1], "b": {"c": "{y}"}})
        assert node == ObjectNode(
            {
                "a": ListNode((Placeholder("x"), Literal(1))),
                "b": ObjectNode({"c": Placeholder("y")}),
            }
        )

    def test_to_data_restores_json(self) -> None:
        data = {"a": ["{x}", 1, None], "b": {"c": "{y}", "d": "text"}}
        assert to_data(parse_template(data)) == data

    def test_to_data_keeps_near_placeholders(self) -> None:
        data = {"note": "{id}\n", "pad": " {id}"}
        assert to_data(parse_template(data)) == data


class TestPlaceholderNames:
    def test_depth_first_without_duplicates(self) -> None:
        node = parse_template({"a": "{x}", "b": ["{y}", {"c": "{x}"}], "d": "{z}"})
        assert placeholder_names(node) == ["x", "y", "z"]

    def test_no_placeholders(self) -> None:
        assert placeholder_names(parse_template({"a": 1})) == []
