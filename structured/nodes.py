"""
structured/nodes.py
═══════════════════

Tagged-node tree model shared by programs and templates.

A node is a plain ``dict`` carrying a ``"type"`` tag plus named fields, in the
shape produced by ESTree-compliant parsers::

    {"type": "BinaryExpression", "operator": "+",
     "left": {"type": "Identifier", "name": "a"},
     "right": {"type": "Literal", "value": 1, "raw": "1"}}

A field holds a scalar, a child node, an ordered list of child nodes, or
``None``. Sibling order inside lists is significant.

This module provides:

    • ``Shape`` / ``shape_of`` – the discriminated view the matcher works on
    • ``from_esprima``         – conversion of esprima-python objects
    • ``fold_constants``       – the one normalisation pass applied to trees
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

Node = Dict[str, Any]

PROGRAM = "Program"
LITERAL = "Literal"
UNARY_EXPRESSION = "UnaryExpression"
EMPTY_STATEMENT = "EmptyStatement"

_SCALARS = (str, int, float, bool)


class Shape(Enum):
    """What a field value is, as far as matching is concerned."""
    ABSENT = "absent"
    NODE = "node"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def shape_of(value: Any) -> Shape:
    if value is None:
        return Shape.ABSENT
    if isinstance(value, dict):
        return Shape.NODE
    if isinstance(value, list):
        return Shape.SEQUENCE
    return Shape.SCALAR


def is_node(value: Any) -> bool:
    return isinstance(value, dict)


def node_type(node: Any) -> Optional[str]:
    """Return the ``type`` tag of *node*, or None for non-nodes."""
    if isinstance(node, dict):
        return node.get("type")
    return None


def scalar_kind(value: Any) -> str:
    """Classify a scalar the way strict equality sees it."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def iter_children(node: Node) -> Iterator[Tuple[str, Any]]:
    """Yield ``(field, value)`` for fields holding a node or a list."""
    for key, value in node.items():
        if isinstance(value, (dict, list)):
            yield key, value


def is_numeric_literal(node: Any) -> bool:
    if node_type(node) != LITERAL:
        return False
    value = node.get("value")
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ─────────────────────────────────────────────────────────────────────
#  esprima adapter
# ─────────────────────────────────────────────────────────────────────

def from_esprima(value: Any) -> Any:
    """Convert an esprima-python parse result into plain node dicts.

    esprima node objects keep their fields as instance attributes in
    declaration order; that order is kept, since it is the order the
    matcher compares fields in. Private attributes are dropped and leaf
    objects with no attributes of their own (compiled regular
    expressions) are reduced to their string form.
    """
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, (list, tuple)):
        return [from_esprima(item) for item in value]
    if isinstance(value, dict):
        return {key: from_esprima(item) for key, item in value.items()}
    attrs = getattr(value, "__dict__", None)
    if attrs is None:
        return str(value)
    return {key: from_esprima(item) for key, item in attrs.items()
            if not key.startswith("_")}


# ─────────────────────────────────────────────────────────────────────
#  Constant folding
# ─────────────────────────────────────────────────────────────────────

def _fold_unary(node: Node) -> Node:
    """Fold ``-5`` / ``+5`` into a single literal; leave anything else."""
    if node.get("type") != UNARY_EXPRESSION:
        return node
    argument = node.get("argument")
    if not is_numeric_literal(argument):
        return node
    operator = node.get("operator")
    if operator == "-":
        argument["value"] = -argument["value"]
        return argument
    if operator == "+":
        argument["value"] = +argument["value"]
        return argument
    return node


def fold_constants(tree: Any) -> Any:
    """Fold unary ``+``/``-`` applied directly to numeric literals.

    Works in place on every container under *tree* and returns the root,
    which is itself replaced when it is a foldable unary expression.
    Nothing else is folded: ``5 + 5`` must still match ``_ + _``.
    """
    if isinstance(tree, list):
        for index, item in enumerate(tree):
            tree[index] = fold_constants(item)
        return tree
    if not isinstance(tree, dict):
        return tree
    for key, value in tree.items():
        if isinstance(value, (dict, list)):
            tree[key] = fold_constants(value)
    return _fold_unary(tree)


def count_nodes(tree: Any) -> int:
    """Number of nodes in *tree* (used in debug logging)."""
    if isinstance(tree, list):
        return sum(count_nodes(item) for item in tree)
    if not isinstance(tree, dict):
        return 0
    return 1 + sum(count_nodes(value) for _, value in iter_children(tree))


__all__ = [
    "Node", "Shape", "shape_of", "is_node", "node_type", "scalar_kind",
    "iter_children", "is_numeric_literal", "from_esprima", "fold_constants",
    "count_nodes", "PROGRAM", "LITERAL", "UNARY_EXPRESSION", "EMPTY_STATEMENT",
]
