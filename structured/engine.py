"""
structured/engine.py
====================

The matching engine: compares annotated templates against program trees.

Three cooperating operations:

    ``match_subtree``     exact match at a node, else depth-first search below it
    ``match_sequence``    ordered scan of a sibling list for a target and its peers
    ``exact_match_node``  field-by-field comparison of one node

Peers are the statements that must follow the target, in order, in the same
sibling list. They are passed as an immutable tuple; ``match_subtree``
reports how many of them a descendant sequence consumed so a caller can
resume from the right one.

Captures are recorded on a ``MatchResult`` and rolled back when the branch
that recorded them fails. Binding cells and skip counters are outside
that transaction: the search controller reads them after a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from structured.errors import StructuralInconsistency
from structured.nodes import (
    PROGRAM, Node, Shape, iter_children, node_type, scalar_kind, shape_of,
)
from structured.results import MatchResult
from structured.template import (
    BLANK, BindingSite, Glob, NormalizedTemplate, VarReference, is_marker,
)

logger = logging.getLogger(__name__)


def _template_shape(value: Any) -> Shape:
    if is_marker(value):
        return Shape.NODE
    return shape_of(value)


@dataclass
class SearchState:
    """Skip counts for one engine run.

    ``skips`` is the schedule chosen by the search controller; ``remaining``
    starts as a copy and is consumed as candidate bindings are rejected.
    """
    order: List[str] = field(default_factory=list)
    skips: Dict[str, int] = field(default_factory=dict)
    remaining: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def for_schedule(cls, order: Sequence[str],
                     schedule: Sequence[int]) -> "SearchState":
        skips = dict(zip(order, schedule))
        return cls(list(order), skips, dict(skips))

    def consume_skip(self, name: str) -> bool:
        """Use up one skip for *name*; False once none are left."""
        left = self.remaining.get(name, 0)
        if left > 0:
            self.remaining[name] = left - 1
            return True
        return False


class MatchingEngine:
    """Runs one match of a template against a tree.

    Parameters
    ----------
    result : MatchResult
        Receives blank, glob and root captures.
    state : SearchState, optional
        Skip counts for the run; no skips when omitted.
    single_node : bool
        Never search below the node being compared.
    """

    def __init__(self, result: MatchResult, state: Optional[SearchState] = None,
                 single_node: bool = False):
        self.result = result
        self.state = state or SearchState()
        self.single_node = single_node

    def run(self, tree: Node, template: NormalizedTemplate) -> bool:
        return self.match_subtree(tree, template.target, template.peers) is not None

    # ---------------------------------------------------------------
    #  Tree search
    # ---------------------------------------------------------------

    def match_subtree(self, candidate: Any, target: Any,
                      peers: Tuple[Any, ...] = ()) -> Optional[int]:
        """Find *target* at or below *candidate*.

        Returns
        -------
        int or None
            Number of *peers* consumed along with the target (``0`` when the
            target matched *candidate* itself), or ``None`` if not found.
        """
        if shape_of(candidate) is not Shape.NODE:
            return None
        if self.exact_match_node(candidate, target):
            return 0
        if self.single_node:
            return None
        for _, child in iter_children(candidate):
            if shape_of(child) is Shape.SEQUENCE:
                if self.match_sequence(child, target, peers):
                    return len(peers)
                continue
            consumed = self.match_subtree(child, target, peers)
            if consumed is not None:
                return consumed
        return None

    def match_sequence(self, nodes: Sequence[Any], target: Any,
                       peers: Tuple[Any, ...] = ()) -> bool:
        """Scan *nodes* for *target* followed, in order, by every peer.

        A glob target takes every remaining element. Peers listed after a
        glob are never reached.
        """
        mark = self.result.checkpoint()
        current = target
        position = 0
        capture: Optional[List[Node]] = None

        for element in nodes:
            if isinstance(current, Glob):
                if capture is None:
                    capture = self.result.open_glob(current.name)
                capture.append(element)
                continue
            consumed = self.match_subtree(element, current, peers[position:])
            if consumed is None:
                continue
            position += consumed
            if position >= len(peers):
                return True
            current = peers[position]
            position += 1

        if capture is not None:
            return True
        if isinstance(current, Glob):
            # A glob matches zero siblings too.
            self.result.open_glob(current.name)
            return True
        self.result.rollback(mark)
        return False

    # ---------------------------------------------------------------
    #  Node comparison
    # ---------------------------------------------------------------

    def exact_match_node(self, candidate: Node, template: Any) -> bool:
        """Compare *candidate* against *template* without searching below it.

        Nested node fields are still located with ``match_subtree``, so a
        template child may match anywhere inside the candidate's child.
        """
        mark = self.result.checkpoint()
        root_to_set = None
        if self.result.root is None and node_type(candidate) != PROGRAM:
            root_to_set = candidate
        try:
            matched = self._compare(candidate, template)
        except StructuralInconsistency as exc:
            logger.debug("structural inconsistency at %s: %s",
                         node_type(candidate), exc)
            matched = False
        if not matched:
            self.result.rollback(mark)
            return False
        if root_to_set is not None:
            self.result.root = root_to_set
        return True

    def _compare(self, candidate: Node, template: Any) -> bool:
        if template is BLANK:
            self.result.capture_blank(candidate)
            return True
        if isinstance(template, Glob):
            return False
        if isinstance(template, (BindingSite, VarReference)):
            return self._match_variable(candidate, template)
        return self._match_fields(candidate, template)

    def _match_variable(self, candidate: Node, marker: Any) -> bool:
        cell = marker.cell
        if isinstance(marker, VarReference) or cell.is_bound:
            return self._match_fields(candidate, cell.fields)
        if self.state.consume_skip(cell.name):
            logger.debug("skipping candidate %s for %s",
                         node_type(candidate), cell.name)
            return False
        cell.bind(candidate)
        return True

    def _match_fields(self, candidate: Node, template: Dict[str, Any]) -> bool:
        for key, expected in template.items():
            if expected is None:
                continue
            actual = candidate.get(key)

            if expected is BLANK:
                if actual is None:
                    return False
                # Block containers are left out of the captures.
                if not (isinstance(actual, dict) and actual.get("body") is not None):
                    self.result.capture_blank(actual)
                continue

            if actual is None:
                return False
            expected_shape = _template_shape(expected)
            actual_shape = shape_of(actual)
            if expected_shape is not actual_shape:
                raise StructuralInconsistency(
                    key, expected_shape.value, actual_shape.value)

            if expected_shape is Shape.SEQUENCE:
                if expected and not self.match_sequence(
                        actual, expected[0], tuple(expected[1:])):
                    return False
            elif expected_shape is Shape.NODE:
                if self.match_subtree(actual, expected) is None:
                    return False
            else:
                if scalar_kind(expected) != scalar_kind(actual):
                    raise StructuralInconsistency(
                        key, scalar_kind(expected), scalar_kind(actual))
                if expected != actual:
                    return False
        return True


__all__ = ["MatchingEngine", "SearchState"]
