"""
structured/search.py
====================

Backtracking search over variable bindings.

The engine binds a variable to the first candidate it meets. When that
choice fails later (a mismatch downstream, or a predicate rejects it), the
search replays the whole match with a *skip count* per variable: the
number of otherwise-acceptable candidates to pass over before binding.

Skip counts are explored lexicographically in first-occurrence order,
innermost variable fastest. Raising a variable's count resets every later
count to zero. A variable is exhausted when a run with its current count
leaves it unbound; the search then backs up to the previous variable and
stops once the first one is exhausted.
"""

from __future__ import annotations

import logging
from typing import Generator, Optional, Sequence, Tuple, Union

from structured.engine import MatchingEngine, SearchState
from structured.nodes import Node, count_nodes
from structured.predicates import PredicateSet
from structured.results import MatchResult, NoMatch
from structured.template import NormalizedTemplate

logger = logging.getLogger(__name__)

Schedule = Tuple[int, ...]


def skip_schedules(count: int) -> Generator[Schedule, Sequence[bool], None]:
    """Yield skip-count tuples for *count* variables.

    After each tuple the caller must ``send`` back, per variable, whether
    the run left it bound. The generator finishes when no variable that
    could still advance remains.
    """
    if count <= 0:
        return
    skips = [0] * count
    while True:
        bound = yield tuple(skips)
        index = count - 1
        while index >= 0 and not bound[index]:
            index -= 1
        if index < 0:
            return
        skips[index] += 1
        for later in range(index + 1, count):
            skips[later] = 0


def _run_once(tree: Node, template: NormalizedTemplate,
              single_node: bool,
              state: Optional[SearchState] = None) -> Optional[MatchResult]:
    result = MatchResult()
    engine = MatchingEngine(result, state, single_node=single_node)
    if not engine.run(tree, template):
        return None
    return result


def search_bindings(tree: Node, template: NormalizedTemplate,
                    predicates: Optional[PredicateSet] = None,
                    single_node: bool = False) -> Union[MatchResult, NoMatch]:
    """Match *template* against *tree*, searching variable bindings.

    Parameters
    ----------
    tree : node
        Folded program tree (or subtree for single-node matching).
    template : NormalizedTemplate
        Annotated template; its binding cells are reset before every run.
    predicates : PredicateSet, optional
        Acceptance predicates over the bound variables.
    single_node : bool
        Only compare against *tree* itself.

    Returns
    -------
    MatchResult or NoMatch
    """
    predicates = predicates if predicates is not None else PredicateSet()
    logger.debug("searching %d node(s), variables=%s",
                 count_nodes(tree), template.order)

    if not template.has_variables:
        if predicates:
            logger.warning("template has no variables; ignoring %d predicate(s)",
                           len(predicates))
        result = _run_once(tree, template, single_node)
        return result if result is not None else NoMatch(attempts=1)

    outcome = NoMatch()
    schedules = skip_schedules(len(template.order))
    schedule = next(schedules)
    while True:
        template.reset_cells()
        state = SearchState.for_schedule(template.order, schedule)
        outcome.attempts += 1
        logger.debug("attempt %d with skips %s", outcome.attempts, schedule)

        result = _run_once(tree, template, single_node, state)
        if result is not None:
            verdict = predicates.evaluate(template.cells)
            outcome.failure = verdict.failure
            known = {error.group for error in outcome.errors}
            outcome.errors.extend(error for error in verdict.errors
                                  if error.group not in known)
            if verdict:
                return result.bind_variables(template.cells.values())

        bound = tuple(template.cells[name].is_bound for name in template.order)
        try:
            schedule = schedules.send(bound)
        except StopIteration:
            break

    logger.debug("search exhausted after %d attempt(s)", outcome.attempts)
    return outcome


__all__ = ["skip_schedules", "search_bindings", "Schedule"]
