# tests/test_matcher.py
"""
End-to-end tests for ``structured.match`` and ``structured.match_node``.
"""

import pytest

import structured
from structured.config import MatcherConfig, MatchOptions
from structured.errors import ProgramParseError, TemplateSyntaxError
from structured.matcher import ProgramCache
from structured.parser import parse_program


class TestMatch:

    def test_blank_conditional(self, matcher):
        assert matcher.match("if (x > 1) {}", "if (_) {}")
        assert matcher.match("if (f()) { g(); }", "if (_) {}")
        assert not matcher.match("var a = 1;", "if (_) {}")

    def test_variable_consistency(self, matcher):
        assert matcher.match("a + a;", "$x + $x;")
        assert not matcher.match("a + b;", "$x + $x;")

    def test_peer_ordering(self, matcher):
        assert matcher.match("foo(); baz(); bar();", "foo(); bar();")
        assert not matcher.match("foo(); bar();", "bar(); foo();")

    def test_glob_tail(self, matcher):
        result = matcher.match("x(); y(); c();", "glob_; c();")
        assert result
        assert len(result.globs[0]) == 3
        assert matcher.match("x(); y();", "glob_; c();")

    def test_constant_folding(self, matcher):
        assert matcher.match("var a = -5;", "var _ = -5;")
        assert matcher.match("var a = 5;", "var _ = +5;")
        assert not matcher.match("var a = 5;", "var _ = -5;")

    def test_predicates_keyword(self, matcher):
        result = matcher.match("var a = 5; var b = 20; var c = 3;", "var _ = $n;",
                               predicates={"$n": lambda n: n["value"] > 10})
        assert result["n"]["value"] == 20

    def test_options_mapping(self, matcher):
        result = matcher.match("var a = 5; var b = 20;", "var _ = $n;",
                               {"predicates": {"$n": lambda n: n["value"] < 10}})
        assert result["n"]["value"] == 5

    def test_unknown_option(self, matcher):
        with pytest.raises(TypeError):
            matcher.match("x;", "x;", {"single": True})

    def test_failure_message(self, matcher):
        result = matcher.match(
            "var a = 400; var b = 120;", "var _ = $foo; var _ = $bar;",
            predicates={"$foo, $bar": lambda foo, bar: {
                "failure": "Check the relationship between values."}})
        assert not result
        assert result.failure == "Check the relationship between values."

    def test_idempotent(self, matcher):
        code = "if (y > 30 && x > 13) { x += y; }"
        first = matcher.match(code, "if (_) { _ += _; }")
        second = matcher.match(code, "if (_) { _ += _; }")
        assert first
        assert first == second

    def test_preparsed_program_and_template(self, matcher):
        tree = parse_program("while (true) { tick(); }")
        template = structured.parse_program("tick();")
        assert matcher.match(tree, template)

    def test_template_syntax_error(self, matcher):
        with pytest.raises(TemplateSyntaxError):
            matcher.match("x;", "if (")

    def test_program_parse_error(self, matcher):
        with pytest.raises(ProgramParseError) as info:
            matcher.match("var = ;", "_;")
        assert info.value.line == 1
        assert isinstance(info.value, structured.StructuredError)

    def test_return_statement_template(self, matcher):
        code = "function f() { return 42; }"
        result = matcher.match(code, "return _;")
        assert result
        assert result.blanks[0]["value"] == 42

    def test_whole_function_template(self, matcher):
        assert matcher.match("if (x) {}", "function structure() { if (_) {} }")
        assert not matcher.match("x;", "function () { if (_) {} }")

    def test_module_level_functions(self):
        assert structured.match("a + a;", "$x + $x;")
        assert not structured.match("a + b;", "$x + $x;")

    def test_pretty(self, matcher):
        result = matcher.match("a + a;", "$x + $x;")
        assert "$x = Identifier(a)" in result.pretty()


class TestMatchNode:

    def test_checks_root_only(self, matcher):
        tree = parse_program("foo(1);")
        statement = tree["body"][0]
        assert matcher.match_node(statement, "foo(_);")
        assert not matcher.match_node(tree, "foo(_);")
        assert matcher.match(tree, "foo(_);")

    def test_single_node_option(self, matcher):
        tree = parse_program("if (a) { b(); }")
        assert not matcher.match(tree, "b();", MatchOptions(single_node=True))

    def test_with_variables(self, matcher):
        statement = parse_program("x = y;")["body"][0]
        result = structured.match_node(statement, "$a = $b;",
                                       predicates={"$b": lambda b: b["name"] == "y"})
        assert result["a"]["name"] == "x"


class TestProgramCache:

    def test_reuses_tree_for_same_text(self):
        cache = ProgramCache()
        first = cache.get("var a = -1;")
        assert cache.get("var a = -1;") is first

    def test_replaced_on_different_input(self):
        cache = ProgramCache()
        first = cache.get("a;")
        cache.get("b;")
        assert cache.get("a;") is not first

    def test_trees_compared_by_identity(self):
        cache = ProgramCache()
        tree = parse_program("a;")
        copied = cache.get(tree)
        assert copied == tree and copied is not tree
        assert cache.get(tree) is copied
        assert cache.get(parse_program("a;")) is not copied

    def test_matcher_owns_caches(self, matcher):
        matcher.match("a;", "a;")
        matcher.match("a;", "a;")
        assert len(matcher.templates) == 1
        assert matcher.templates.hits == 1


class TestConfig:

    def test_module_source_type(self):
        matcher = structured.StructureMatcher(MatcherConfig(source_type="module"))
        assert matcher.match("import x from 'x'; x();", "x();")

    def test_jsx_templates(self):
        matcher = structured.StructureMatcher(MatcherConfig(jsx=True))
        assert matcher.match("render(<Widget />);", "render(<Widget />);")
        assert not matcher.match("render(<Other />);", "render(<Widget />);")
        assert len(matcher.templates) == 1
        assert matcher.templates.hits == 1

    def test_validate(self):
        assert MatcherConfig().validate() == []
        assert MatcherConfig(source_type="strict").validate()

    def test_coerce(self):
        options = MatchOptions.coerce(None, single_node=True)
        assert options.single_node
        assert options.predicates == {}
        given = MatchOptions(predicates={"$a": bool})
        assert MatchOptions.coerce(given).predicates == {"$a": bool}
