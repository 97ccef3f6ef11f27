"""
structured — structural pattern matching over JavaScript syntax trees.

Write the shape you are looking for as a snippet of JavaScript with
placeholders, and ask whether a program contains it::

    import structured

    structured.match("var total = price * 2;", "var _ = _ * 2;")
    structured.match("a + a;", "$x + $x;")["x"]       # {'type': 'Identifier', ...}

Placeholders
------------
``_``                 any value that is present
``{}``                any block
``$name``             a variable; every occurrence must match the same node
``glob_``             the rest of a statement or argument list
``glob$name``         the same, captured under ``name``

Statements listed one after another must appear in that order at the same
nesting level, not necessarily adjacent.

Modules
-------
nodes        Tree model, esprima conversion, constant folding
parser       esprima adapter for programs and template snippets
template     Placeholder annotation and template cache
engine       Tree and sequence matching
search       Backtracking over variable bindings
predicates   User acceptance predicates
matcher      Caches and the ``match`` / ``match_node`` entry points
"""

from structured.config import MatcherConfig, MatchOptions
from structured.errors import (
    PredicateConfigurationError,
    ProgramParseError,
    StructuralInconsistency,
    StructuredError,
    TemplateSyntaxError,
)
from structured.matcher import StructureMatcher, match, match_node
from structured.nodes import fold_constants
from structured.parser import parse_program
from structured.predicates import Rejection
from structured.results import MatchResult, NoMatch

__version__ = "0.1.0"

__all__ = [
    "match",
    "match_node",
    "StructureMatcher",
    "MatchResult",
    "NoMatch",
    "Rejection",
    "MatchOptions",
    "MatcherConfig",
    "StructuredError",
    "ProgramParseError",
    "TemplateSyntaxError",
    "PredicateConfigurationError",
    "StructuralInconsistency",
    "parse_program",
    "fold_constants",
]
