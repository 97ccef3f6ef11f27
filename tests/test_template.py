# tests/test_template.py
"""
Tests for template parsing, placeholder annotation and the template cache.
"""

import pytest

from structured.config import MatcherConfig
from structured.errors import TemplateSyntaxError
from structured.parser import parse_template_body
from structured.template import (
    BLANK, BindingCell, BindingSite, Glob, VarReference, is_variable_name,
    TemplateCache, normalize_template,
)


class TestParseTemplateBody:

    def test_returns_function_body(self):
        body = parse_template_body("foo(); bar();")
        assert body["type"] == "BlockStatement"
        assert len(body["body"]) == 2

    def test_allows_return_statements(self):
        body = parse_template_body("return _;")
        assert body["body"][0]["type"] == "ReturnStatement"

    def test_syntax_error(self):
        with pytest.raises(TemplateSyntaxError) as info:
            parse_template_body("var = ;")
        assert info.value.line == 1
        assert info.value.code == "STRUCT-2001"

    def test_rejects_snippet_closing_the_wrapper(self):
        with pytest.raises(TemplateSyntaxError):
            parse_template_body("})(); (function () {")

    def test_whole_function_source_is_unwrapped(self):
        body = parse_template_body("function structure() { if (_) {} }")
        assert [s["type"] for s in body["body"]] == ["IfStatement"]
        body = parse_template_body("function () { return _; }")
        assert body["body"][0]["type"] == "ReturnStatement"

    def test_other_named_function_is_a_declaration(self):
        template = normalize_template("function helper() { x(); }")
        assert template.target["type"] == "FunctionDeclaration"
        assert template.target["id"]["name"] == "helper"


class TestAnnotation:

    def test_blank_wildcards(self):
        template = normalize_template("if (_) {}")
        assert template.target["type"] == "IfStatement"
        assert template.target["test"] is BLANK
        assert template.target["consequent"] is BLANK
        assert template.peers == ()

    def test_variables_share_one_cell(self):
        template = normalize_template("$x + $x;")
        expression = template.target["expression"]
        assert isinstance(expression["left"], BindingSite)
        assert isinstance(expression["right"], VarReference)
        assert expression["left"].cell is expression["right"].cell
        assert template.order == ["$x"]

    def test_variable_order_is_first_occurrence(self):
        template = normalize_template("var _ = $b; var _ = $a; $b;")
        assert template.order == ["$b", "$a"]

    def test_empty_statements_are_dropped(self):
        template = normalize_template("foo();;;")
        assert template.peers == ()

    def test_peers(self):
        template = normalize_template("foo(); bar(); baz();")
        assert template.target["expression"]["callee"]["name"] == "foo"
        assert [p["expression"]["callee"]["name"] for p in template.peers] == [
            "bar", "baz"]

    def test_globs(self):
        template = normalize_template("glob_; c();")
        assert template.target == Glob()
        assert template.target.anonymous
        named = normalize_template("foo(glob$rest);")
        assert named.target["expression"]["arguments"] == [Glob("rest")]

    @pytest.mark.parametrize("text", [
        "foo(glob$x); $x;",
        "$x; foo(glob$x);",
    ])
    def test_named_glob_and_variable_cannot_share_a_name(self, text):
        with pytest.raises(TemplateSyntaxError, match="glob\\$x"):
            normalize_template(text)

    def test_named_glob_beside_other_variable(self):
        template = normalize_template("foo(glob$rest); $x;")
        assert template.target["expression"]["arguments"] == [Glob("rest")]
        assert template.order == ["$x"]

    def test_glob_outside_sequence_is_plain(self):
        template = normalize_template("x = glob_;")
        assert template.target["expression"]["right"] == {
            "type": "Identifier", "name": "glob_"}

    def test_empty_template_is_blank(self):
        assert normalize_template("").target is BLANK

    def test_preparsed_template_is_not_mutated(self):
        body = parse_template_body("var _ = -5; $n;")
        before = repr(body)
        normalize_template(body)
        assert repr(body) == before

    def test_rejects_other_inputs(self):
        with pytest.raises(TemplateSyntaxError):
            normalize_template(42)

    @pytest.mark.parametrize("name, expected", [
        ("$x", True), ("$", False), ("x$", False), ("_", False), (None, False),
    ])
    def test_is_variable_name(self, name, expected):
        assert is_variable_name(name) is expected


class TestBindingCell:

    def test_bind_and_clear(self):
        cell = BindingCell("$x")
        assert not cell.is_bound
        node = {"type": "Identifier", "name": "a"}
        cell.bind(node)
        assert cell.is_bound
        assert cell.node is node
        assert cell.fields == node and cell.fields is not node
        assert cell.key == "x"
        cell.clear()
        assert not cell.is_bound
        assert cell.fields == {}


class TestTemplateCache:

    def test_caches_by_text(self, template_cache):
        first = normalize_template("$x + $x;", template_cache)
        second = normalize_template("$x + $x;", template_cache)
        assert len(template_cache) == 1
        assert template_cache.misses == 1
        assert template_cache.hits == 1
        assert first.cells["$x"] is not second.cells["$x"]

    def test_entries_stay_unannotated(self, template_cache):
        normalize_template("if (_) {}", template_cache)
        entry = template_cache.get("if (_) {}")
        assert entry["body"][0]["test"] == {"type": "Identifier", "name": "_"}

    def test_empty_cache_is_still_used(self, template_cache):
        assert not template_cache
        normalize_template("a;", template_cache)
        assert "a;" in template_cache

    def test_parses_with_its_config(self):
        cache = TemplateCache(MatcherConfig(jsx=True))
        template = normalize_template("render(<Widget />);", cache)
        assert template.target["expression"]["arguments"][0]["type"] == "JSXElement"
        with pytest.raises(TemplateSyntaxError):
            normalize_template("render(<Widget />);", TemplateCache())

    def test_failed_parse_is_not_cached(self, template_cache):
        with pytest.raises(TemplateSyntaxError):
            template_cache.get("if (")
        assert "if (" not in template_cache
