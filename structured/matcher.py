"""
structured/matcher.py
=====================

Top-level orchestration: program cache, template cache and the ``match`` /
``match_node`` entry points.

Example
-------
    >>> import structured
    >>> result = structured.match("if (y > 30 && x > 13) { x += y; }",
    ...                           "if (_) {}")
    >>> bool(result)
    True

Templates are function-body snippets. ``_`` is a blank, ``$name`` a
variable, ``glob_`` / ``glob$name`` consume a run of siblings, and
several statements must appear in order at one nesting level::

    structured.match(code, "var _ = $a; var _ = $b;",
                     predicates={"$a, $b": lambda a, b: a["value"] > b["value"]})
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Optional, Union

from structured.config import MatcherConfig, MatchOptions, PredicateFunc
from structured.nodes import Node, fold_constants
from structured.parser import parse_program
from structured.predicates import PredicateSet
from structured.results import MatchResult, NoMatch
from structured.search import search_bindings
from structured.template import TemplateCache, normalize_template

logger = logging.getLogger(__name__)

ProgramInput = Union[str, Node]
TemplateInput = Union[str, Node]
OptionsInput = Union[MatchOptions, Mapping[str, Any], None]


class ProgramCache:
    """Remembers the most recently parsed program.

    Source text is compared by value, pre-parsed trees by identity. A
    differing input replaces the entry; there is only ever one.
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or MatcherConfig()
        self._key: Any = None
        self._tree: Optional[Node] = None

    def _is_cached(self, program: ProgramInput) -> bool:
        if self._tree is None:
            return False
        if isinstance(program, str):
            return isinstance(self._key, str) and program == self._key
        return program is self._key

    def get(self, program: ProgramInput) -> Node:
        """Return the folded tree for *program*, parsing on a miss."""
        if not self._is_cached(program):
            if isinstance(program, str):
                tree = parse_program(program, self.config)
            else:
                tree = copy.deepcopy(program)
            self._key, self._tree = program, tree
            logger.debug("program cache miss")
        self._tree = fold_constants(self._tree)
        return self._tree

    def clear(self) -> None:
        self._key = None
        self._tree = None


class StructureMatcher:
    """Matches templates against programs, owning both caches.

    Parameters
    ----------
    config : MatcherConfig, optional
        Parser settings shared by programs and templates.
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or MatcherConfig()
        for warning in self.config.validate():
            logger.warning("matcher config: %s", warning)
        self.templates = TemplateCache(self.config)
        self.programs = ProgramCache(self.config)

    def match(self, program: ProgramInput, template: TemplateInput,
              options: OptionsInput = None, *,
              predicates: Optional[Mapping[str, PredicateFunc]] = None,
              single_node: Optional[bool] = None) -> Union[MatchResult, NoMatch]:
        """Look for *template* anywhere in *program*.

        Parameters
        ----------
        program : str or node
            Program source, or a tree from ``parse_program``.
        template : str or node
            Function-body snippet, or a pre-parsed template tree.
        options : MatchOptions or mapping, optional
            ``predicates`` and ``single_node``; keyword arguments override.

        Returns
        -------
        MatchResult or NoMatch
            ``NoMatch`` is falsy.

        Raises
        ------
        TemplateSyntaxError
            If the template does not parse to a single function body.
        ProgramParseError
            If the program source does not parse.
        """
        options = MatchOptions.coerce(options, predicates=predicates,
                                      single_node=single_node)
        normalized = normalize_template(template, self.templates)
        tree = self.programs.get(program)
        return search_bindings(tree, normalized, PredicateSet(options.predicates),
                               single_node=options.single_node)

    def match_node(self, program: ProgramInput, template: TemplateInput,
                   options: OptionsInput = None, *,
                   predicates: Optional[Mapping[str, PredicateFunc]] = None
                   ) -> Union[MatchResult, NoMatch]:
        """Like ``match``, comparing against *program*'s root only."""
        return self.match(program, template, options,
                          predicates=predicates, single_node=True)


_default_matcher: Optional[StructureMatcher] = None


def default_matcher() -> StructureMatcher:
    """The shared matcher behind the module-level functions."""
    global _default_matcher
    if _default_matcher is None:
        _default_matcher = StructureMatcher()
    return _default_matcher


def match(program: ProgramInput, template: TemplateInput,
          options: OptionsInput = None, *,
          predicates: Optional[Mapping[str, PredicateFunc]] = None,
          single_node: Optional[bool] = None) -> Union[MatchResult, NoMatch]:
    """Look for *template* anywhere in *program* (see ``StructureMatcher.match``)."""
    return default_matcher().match(program, template, options,
                                   predicates=predicates,
                                   single_node=single_node)


def match_node(program: ProgramInput, template: TemplateInput,
               options: OptionsInput = None, *,
               predicates: Optional[Mapping[str, PredicateFunc]] = None
               ) -> Union[MatchResult, NoMatch]:
    """Compare *template* against *program*'s root node only."""
    return default_matcher().match_node(program, template, options,
                                        predicates=predicates)


__all__ = [
    "ProgramCache", "StructureMatcher", "default_matcher", "match", "match_node",
]
