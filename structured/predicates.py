"""
structured/predicates.py
========================

User acceptance predicates over bound variables.

Predicates are registered under a *group key* naming one or more variables::

    {
        "$n": lambda n: n["value"] > 10,
        "$a, $b": lambda a, b: a["value"] > b["value"] or Rejection("a <= b"),
    }

Each predicate receives deep copies of the bound nodes, in the order the
group names them, and accepts by returning a truthy value. It rejects by
returning something falsy, a ``Rejection`` or a mapping with a
``"failure"`` key; the last two carry a message back to the caller.

Depends on:
    - parsimonious      (PEG grammar for group keys)
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from structured.config import PredicateFunc
from structured.errors import PredicateConfigurationError
from structured.template import BindingCell

logger = logging.getLogger(__name__)


# ===================================================================
#  PART 1 — GROUP KEYS
# ===================================================================

GROUP_GRAMMAR = Grammar(r'''
    group       = name more_names*
    more_names  = separator name
    separator   = ~r"\s*,\s*"
    name        = ~r"[^,\s]+"
''')


class _GroupVisitor(NodeVisitor):
    """Flattens a parsed group key into its variable names."""

    def generic_visit(self, node, visited_children):
        return visited_children

    def visit_group(self, node, visited_children):
        first, rest = visited_children
        return [first] + list(rest)

    def visit_more_names(self, node, visited_children):
        _, name = visited_children
        return name

    def visit_name(self, node, visited_children):
        return node.text


def parse_variable_group(key: str) -> List[str]:
    """Split ``"$a, $b"`` into ``["$a", "$b"]``.

    Raises
    ------
    PredicateConfigurationError
        If *key* is empty or not a comma-separated list of names.
    """
    try:
        tree = GROUP_GRAMMAR.parse(key.strip())
    except ParseError as exc:
        raise PredicateConfigurationError(
            key, f"malformed variable group at column {exc.pos + 1}") from exc
    return _GroupVisitor().visit(tree)


# ===================================================================
#  PART 2 — VERDICTS
# ===================================================================

@dataclass(frozen=True)
class Rejection:
    """Returned by a predicate to reject with an explanation."""
    message: str

    def __bool__(self) -> bool:
        return False


@dataclass
class PredicateVerdict:
    accepted: bool
    failure: Optional[str] = None
    errors: List[PredicateConfigurationError] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.accepted


def _interpret(outcome: Any) -> Tuple[bool, Optional[str]]:
    if isinstance(outcome, Rejection):
        return False, outcome.message
    if isinstance(outcome, Mapping) and "failure" in outcome:
        return False, outcome["failure"]
    return bool(outcome), None


# ===================================================================
#  PART 3 — PREDICATE SET
# ===================================================================

class PredicateSet:
    """The predicates of one ``match`` call, keyed by variable group."""

    def __init__(self, predicates: Optional[Mapping[str, PredicateFunc]] = None):
        self._predicates: Dict[str, PredicateFunc] = dict(predicates or {})
        self._groups: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._predicates)

    def __bool__(self) -> bool:
        return bool(self._predicates)

    def _names(self, key: str) -> List[str]:
        names = self._groups.get(key)
        if names is None:
            names = self._groups[key] = parse_variable_group(key)
        return names

    def _arguments(self, key: str, cells: Mapping[str, BindingCell]) -> List[Any]:
        arguments = []
        for name in self._names(key):
            cell = cells.get(name)
            if cell is None:
                raise PredicateConfigurationError(
                    key, f"variable {name} does not appear in the template")
            arguments.append(copy.deepcopy(cell.node))
        return arguments

    def evaluate(self, cells: Mapping[str, BindingCell]) -> PredicateVerdict:
        """Run every predicate against the current bindings.

        Stops at the first rejection. Configuration errors are logged and
        count as a rejection without aborting the search.
        """
        for key, predicate in self._predicates.items():
            try:
                arguments = self._arguments(key, cells)
            except PredicateConfigurationError as exc:
                logger.error("%s", exc)
                return PredicateVerdict(False, errors=[exc])
            accepted, failure = _interpret(predicate(*arguments))
            if not accepted:
                logger.debug("predicate %r rejected: %s", key, failure)
                return PredicateVerdict(False, failure=failure)
        return PredicateVerdict(True)


__all__ = [
    "GROUP_GRAMMAR", "parse_variable_group", "Rejection", "PredicateVerdict",
    "PredicateSet",
]
