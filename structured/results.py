"""
structured/results.py
=====================

Outcome objects returned by ``match``.

``MatchResult`` is truthy and carries the captures of a successful match;
``NoMatch`` is falsy and carries what is known about why nothing matched.
Both are plain values: ``if structured.match(code, template): ...`` works.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from structured.nodes import Node, node_type

if TYPE_CHECKING:
    from structured.errors import PredicateConfigurationError
    from structured.template import BindingCell

# (blank count, glob count, vars snapshot, root)
Checkpoint = Tuple[int, int, Dict[str, Any], Optional[Node]]


def _describe(value: Any) -> str:
    if isinstance(value, list):
        return "[" + ", ".join(_describe(item) for item in value) + "]"
    kind = node_type(value)
    if kind is None:
        return json.dumps(value)
    name = value.get("name")
    if name is not None:
        return f"{kind}({name})"
    if "value" in value:
        return f"{kind}({json.dumps(value['value'])})"
    return kind


@dataclass
class MatchResult:
    """Captures from a successful match.

    Attributes
    ----------
    blanks : list
        Values captured by blank wildcards, in the order they were found.
    globs : list
        One list of sibling nodes per anonymous glob.
    vars : dict
        Variable name (without ``$``) to the node it was bound to; named
        globs map to the list of nodes they consumed.
    root : node or None
        Outermost non-``Program`` node at which the template matched.
    """
    blanks: List[Any] = field(default_factory=list)
    globs: List[List[Node]] = field(default_factory=list)
    vars: Dict[str, Any] = field(default_factory=dict)
    root: Optional[Node] = None

    def __bool__(self) -> bool:
        return True

    def __getitem__(self, name: str) -> Any:
        """Shortcut to a variable's value; the ``$`` prefix is optional."""
        key = name.lstrip("$")
        if key not in self.vars:
            raise KeyError(f"No variable named '{name}'")
        return self.vars[key]

    def get(self, name: str, default: Any = None) -> Any:
        return self.vars.get(name.lstrip("$"), default)

    # -- transactional capture -------------------------------------------

    def checkpoint(self) -> Checkpoint:
        return (len(self.blanks), len(self.globs), dict(self.vars), self.root)

    def rollback(self, mark: Checkpoint) -> None:
        blanks, globs, variables, root = mark
        del self.blanks[blanks:]
        del self.globs[globs:]
        self.vars = variables
        self.root = root

    def capture_blank(self, value: Any) -> None:
        self.blanks.append(value)

    def open_glob(self, name: Optional[str]) -> List[Node]:
        """Start a glob capture list and register it under its name."""
        capture: List[Node] = []
        if name is None:
            self.globs.append(capture)
        else:
            self.vars[name] = capture
        return capture

    def bind_variables(self, cells: Iterable["BindingCell"]) -> "MatchResult":
        """Copy bound cells into ``vars``; unbound cells are left out."""
        for cell in cells:
            if cell.is_bound:
                self.vars[cell.key] = cell.node
        return self

    def pretty(self) -> str:
        lines = ["Match" + (f" at {_describe(self.root)}" if self.root else "")]
        for index, value in enumerate(self.blanks):
            lines.append(f"  _[{index}] = {_describe(value)}")
        for index, nodes in enumerate(self.globs):
            lines.append(f"  glob_[{index}] = {_describe(nodes)}")
        for name, value in sorted(self.vars.items()):
            lines.append(f"  ${name} = {_describe(value)}")
        return "\n".join(lines)


@dataclass
class NoMatch:
    """The template was not found.

    Attributes
    ----------
    failure : str or None
        Message from the last predicate that rejected with one.
    errors : list
        Predicate configuration errors met during the search.
    attempts : int
        Number of engine runs performed.
    """
    failure: Optional[str] = None
    errors: List["PredicateConfigurationError"] = field(default_factory=list)
    attempts: int = 0

    def __bool__(self) -> bool:
        return False

    def pretty(self) -> str:
        text = f"No match after {self.attempts} attempt(s)"
        if self.failure:
            text += f": {self.failure}"
        for error in self.errors:
            text += f"\n  {error}"
        return text


__all__ = ["MatchResult", "NoMatch", "Checkpoint"]
