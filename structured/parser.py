"""
structured/parser.py
====================

Adapter around the esprima parser.

Programs are parsed as-is. Template snippets are parsed as the body of a
wrapper function expression, so a template is always "a function body":
statements only legal inside a function (``return _;``) are accepted and
the result is a ``BlockStatement`` whose ``body`` lists the statements.

Depends on:
    - esprima           (ECMAScript parser, ESTree output)
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type

import esprima
from esprima.error_handler import Error as EsprimaError

from structured.config import MatcherConfig
from structured.errors import ProgramParseError, TemplateSyntaxError, SourceError
from structured.nodes import Node, from_esprima, node_type

logger = logging.getLogger(__name__)

_TEMPLATE_PREFIX = "(function structure() {\n"
_TEMPLATE_SUFFIX = "\n})"
_TEMPLATE_LINE_OFFSET = 1
_SOURCE_FUNCTION_NAMES = (None, "structure")


def _run_esprima(source: str, config: MatcherConfig) -> Any:
    if config.source_type == "module":
        return esprima.parseModule(source, **config.parser_options())
    return esprima.parseScript(source, **config.parser_options())


def _translate(exc: EsprimaError, error_cls: Type[SourceError],
               line_offset: int = 0) -> SourceError:
    line = getattr(exc, "lineNumber", None)
    if line is not None:
        line = max(1, line - line_offset)
    description = getattr(exc, "description", None) or str(exc)
    return error_cls(description, line=line,
                     column=getattr(exc, "column", None),
                     description=description)


def parse_program(source: str, config: Optional[MatcherConfig] = None) -> Node:
    """Parse program text into a ``Program`` node.

    Raises
    ------
    ProgramParseError
        If esprima rejects the source.
    """
    config = config or MatcherConfig()
    try:
        tree = _run_esprima(source, config)
    except EsprimaError as exc:
        raise _translate(exc, ProgramParseError) from exc
    return from_esprima(tree)


def _lone_function(tree: Node) -> Optional[Node]:
    body = tree.get("body") or []
    expression = body[0].get("expression") if len(body) == 1 else None
    if (node_type(expression) != "FunctionExpression"
            or node_type(expression.get("body")) != "BlockStatement"):
        return None
    return expression


def _unwrap_function_source(text: str, config: MatcherConfig) -> Optional[Node]:
    """Body of a snippet written as a whole function, or None.

    ``function () { ... }`` and ``function structure() { ... }`` are read
    as the function they spell out. Any other name is left to the regular
    wrapper, where the snippet is a function declaration to match.
    """
    if not text.lstrip().startswith("function"):
        return None
    try:
        tree = from_esprima(_run_esprima("(" + text + ")", config))
    except EsprimaError:
        return None
    function = _lone_function(tree)
    if function is None:
        return None
    name = (function.get("id") or {}).get("name")
    if name not in _SOURCE_FUNCTION_NAMES:
        return None
    logger.debug("unwrapped function-source template %r", name)
    return function["body"]


def parse_template_body(text: str, config: Optional[MatcherConfig] = None) -> Node:
    """Parse a template snippet and return its function-body node.

    The snippet is either a list of statements, or a whole anonymous
    function (or one named ``structure``) whose body is the template.

    Raises
    ------
    TemplateSyntaxError
        If the snippet does not parse, or does not parse to exactly one
        wrapper function with a body (the snippet closed it early).
    """
    config = config or MatcherConfig()
    unwrapped = _unwrap_function_source(text, config)
    if unwrapped is not None:
        return unwrapped
    try:
        tree = from_esprima(
            _run_esprima(_TEMPLATE_PREFIX + text + _TEMPLATE_SUFFIX, config))
    except EsprimaError as exc:
        raise _translate(exc, TemplateSyntaxError,
                         _TEMPLATE_LINE_OFFSET) from exc

    function = _lone_function(tree)
    if function is None:
        raise TemplateSyntaxError(
            "template must be a single function body; "
            "check for unbalanced braces")
    logger.debug("parsed template body with %d statement(s)",
                 len(function["body"]["body"]))
    return function["body"]


__all__ = ["parse_program", "parse_template_body"]
