"""
structured/template.py
======================

Template normalisation: parse a snippet, fold constants, and rewrite the
placeholder markers into matcher tokens.

Placeholder forms
-----------------
- ``_`` (any node whose ``name`` is ``"_"``) or an empty ``{}`` body: a blank.
  The position must hold some value, any value.
- ``$name``: a named variable. The first occurrence becomes a binding site,
  every later occurrence a reference to the same ``BindingCell``.
- ``glob_`` / ``glob$name`` as a list element: a glob, which swallows the rest
  of the sibling list, anonymously or under ``name``.
- ``;``: empty statements are dropped, they constrain nothing.

Parsed templates are cached by text before annotation. Annotation always
runs on a fresh deep copy, so each call gets its own binding cells.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from structured.config import MatcherConfig
from structured.errors import TemplateSyntaxError
from structured.nodes import EMPTY_STATEMENT, Node, fold_constants, node_type
from structured.parser import parse_template_body

logger = logging.getLogger(__name__)

VARIABLE_SIGIL = "$"
BLANK_NAME = "_"
ANONYMOUS_GLOB = "glob_"
NAMED_GLOB_PREFIX = "glob$"


# ===================================================================
#  PART 1 — MARKERS
# ===================================================================

class _Blank:
    """Singleton standing for an unconstrained but required value."""
    _instance: Optional["_Blank"] = None

    def __new__(cls) -> "_Blank":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BLANK"

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Blank":
        return self


BLANK = _Blank()


class BindingCell:
    """The slot a named variable resolves into during one match run.

    Template references hold the cell itself, so binding it is visible to
    every occurrence at once. ``clear`` resets the slot in place for the
    next run; the cell object must survive since the template points at it.
    """

    __slots__ = ("name", "node", "fields")

    def __init__(self, name: str):
        self.name = name
        self.node: Optional[Node] = None
        self.fields: Node = {}

    @property
    def is_bound(self) -> bool:
        return self.node is not None

    @property
    def key(self) -> str:
        """Name without the sigil, as used in ``MatchResult.vars``."""
        return self.name[len(VARIABLE_SIGIL):]

    def bind(self, node: Node) -> None:
        self.node = node
        self.fields = dict(node)

    def clear(self) -> None:
        self.node = None
        self.fields = {}

    def __repr__(self) -> str:
        state = self.node.get("type") if self.node else "unbound"
        return f"BindingCell({self.name}={state})"


@dataclass(frozen=True, eq=False)
class BindingSite:
    """First occurrence of a variable: the place its value is chosen."""
    cell: BindingCell

    def __deepcopy__(self, memo: Dict[int, Any]) -> "BindingSite":
        return self


@dataclass(frozen=True, eq=False)
class VarReference:
    """Later occurrence of a variable: must equal what the site bound."""
    cell: BindingCell

    def __deepcopy__(self, memo: Dict[int, Any]) -> "VarReference":
        return self


@dataclass(frozen=True)
class Glob:
    """Sequence marker consuming the remaining siblings."""
    name: Optional[str] = None

    @property
    def anonymous(self) -> bool:
        return self.name is None


Marker = Union[_Blank, BindingSite, VarReference, Glob]
_MARKER_TYPES = (_Blank, BindingSite, VarReference, Glob)


def is_marker(value: Any) -> bool:
    return isinstance(value, _MARKER_TYPES)


def is_variable_name(name: Any) -> bool:
    return (isinstance(name, str) and len(name) >= 2
            and name.startswith(VARIABLE_SIGIL))


def _is_blank(node: Node) -> bool:
    if node.get("name") == BLANK_NAME:
        return True
    body = node.get("body")
    return isinstance(body, list) and not body


def _glob_of(node: Any) -> Optional[Glob]:
    if not isinstance(node, dict):
        return None
    name = node.get("name")
    if name == ANONYMOUS_GLOB:
        return Glob()
    if (isinstance(name, str) and name.startswith(NAMED_GLOB_PREFIX)
            and len(name) > len(NAMED_GLOB_PREFIX)):
        return Glob(name[len(NAMED_GLOB_PREFIX):])
    return _glob_of(node.get("expression"))


# ===================================================================
#  PART 2 — NORMALISED TEMPLATE
# ===================================================================

@dataclass
class NormalizedTemplate:
    """An annotated template ready for matching.

    Attributes
    ----------
    target : node or marker
        What must be found first.
    peers : tuple
        Statements that must follow ``target`` in order, as later siblings.
    cells : dict
        Binding cells keyed by variable name, in first-occurrence order.
    tree : node
        The annotated root the target and peers were taken from.
    """
    target: Any
    peers: Tuple[Any, ...] = ()
    cells: Dict[str, BindingCell] = field(default_factory=dict)
    tree: Any = None

    @property
    def order(self) -> List[str]:
        return list(self.cells)

    @property
    def has_variables(self) -> bool:
        return bool(self.cells)

    def reset_cells(self) -> None:
        for cell in self.cells.values():
            cell.clear()


def _capture_clash(name: str) -> TemplateSyntaxError:
    # Named globs and variables both land in MatchResult.vars.
    return TemplateSyntaxError(
        f"'{NAMED_GLOB_PREFIX}{name}' and '{VARIABLE_SIGIL}{name}' "
        f"cannot share a name in one template")


class _Annotator:
    """Rewrites placeholder nodes in place, allocating cells as it goes."""

    def __init__(self) -> None:
        self.cells: Dict[str, BindingCell] = {}
        self.glob_names: Set[str] = set()

    def annotate_node(self, node: Node) -> Node:
        for key in list(node):
            child = node[key]
            if node_type(child) == EMPTY_STATEMENT:
                del node[key]
            else:
                node[key] = self.annotate(child)
        return node

    def annotate(self, value: Any, in_sequence: bool = False) -> Any:
        if isinstance(value, list):
            return [self.annotate(item, in_sequence=True) for item in value
                    if node_type(item) != EMPTY_STATEMENT]
        if not isinstance(value, dict):
            return value
        if _is_blank(value):
            return BLANK
        name = value.get("name")
        if is_variable_name(name):
            return self._variable(name)
        if in_sequence:
            glob = _glob_of(value)
            if glob is not None:
                return self._glob(glob)
        return self.annotate_node(value)

    def _glob(self, glob: Glob) -> Glob:
        if not glob.anonymous:
            if VARIABLE_SIGIL + glob.name in self.cells:
                raise _capture_clash(glob.name)
            self.glob_names.add(glob.name)
        return glob

    def _variable(self, name: str) -> Union[BindingSite, VarReference]:
        cell = self.cells.get(name)
        if cell is None:
            cell = BindingCell(name)
            if cell.key in self.glob_names:
                raise _capture_clash(cell.key)
            self.cells[name] = cell
            return BindingSite(cell)
        return VarReference(cell)


def annotate_template(tree: Node) -> NormalizedTemplate:
    """Annotate *tree* in place and split it into target and peers.

    A root whose ``body`` is a list contributes its first statement as the
    target and the rest as peers; an empty body leaves a blank target. Any
    other root is itself the target.
    """
    annotator = _Annotator()
    body = tree.get("body") if isinstance(tree, dict) else None
    if isinstance(body, list):
        statements = annotator.annotate(body)
        tree["body"] = statements
        target = statements[0] if statements else BLANK
        peers = tuple(statements[1:])
    else:
        target = annotator.annotate(tree)
        peers = ()
    return NormalizedTemplate(target=target, peers=peers,
                              cells=annotator.cells, tree=tree)


# ===================================================================
#  PART 3 — CACHE
# ===================================================================

class TemplateCache:
    """Parsed-and-folded templates keyed by their exact source text.

    Entries are never annotated; ``get`` hands out deep copies so that
    annotation cannot leak binding cells between calls.
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or MatcherConfig()
        self._entries: Dict[str, Node] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return text in self._entries

    def get(self, text: str) -> Node:
        entry = self._entries.get(text)
        if entry is None:
            self.misses += 1
            entry = fold_constants(parse_template_body(text, self.config))
            self._entries[text] = entry
        else:
            self.hits += 1
        return copy.deepcopy(entry)

    def clear(self) -> None:
        self._entries.clear()


def normalize_template(template: Union[str, Node],
                       cache: Optional[TemplateCache] = None) -> NormalizedTemplate:
    """Turn template text or a pre-parsed tree into a ``NormalizedTemplate``.

    Raises
    ------
    TemplateSyntaxError
        If the text does not parse to a single function body, or the
        template is neither text nor a node.
    """
    if isinstance(template, str):
        tree = (cache if cache is not None else TemplateCache()).get(template)
    elif isinstance(template, dict):
        tree = fold_constants(copy.deepcopy(template))
    else:
        raise TemplateSyntaxError(
            f"template must be source text or a node, not {type(template).__name__}")
    normalized = annotate_template(tree)
    logger.debug("normalized template: target=%s peers=%d variables=%s",
                 node_type(normalized.target) or normalized.target,
                 len(normalized.peers), normalized.order)
    return normalized


__all__ = [
    "BLANK", "BindingCell", "BindingSite", "VarReference", "Glob", "Marker",
    "is_marker",
    "NormalizedTemplate", "TemplateCache", "annotate_template",
    "normalize_template", "is_variable_name", "VARIABLE_SIGIL",
]
