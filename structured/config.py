"""
structured/config.py
====================

Configuration dataclasses.

* ``MatcherConfig`` – parser-facing settings owned by a ``StructureMatcher``
* ``MatchOptions``  – per-call options (predicates, single-node mode)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

_SOURCE_TYPES = ("script", "module")

PredicateFunc = Callable[..., Any]


@dataclass
class MatcherConfig:
    """Tuning knobs for parsing programs and templates."""
    source_type: str = "script"
    jsx: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.source_type not in _SOURCE_TYPES:
            warnings.append(
                f"source_type must be one of {', '.join(_SOURCE_TYPES)}, "
                f"got {self.source_type!r}")
        return warnings

    def parser_options(self) -> Dict[str, Any]:
        """Keyword options forwarded to esprima."""
        return {"jsx": self.jsx}


@dataclass
class MatchOptions:
    """Options for a single ``match`` call.

    Attributes
    ----------
    predicates : dict
        Maps a comma-joined variable group (``"$a"``, ``"$a, $b"``) to a
        callable receiving snapshots of the bound nodes in group order.
    single_node : bool
        Compare the template against the given root only: no subtree
        search below it.
    """
    predicates: Dict[str, PredicateFunc] = field(default_factory=dict)
    single_node: bool = False

    @classmethod
    def coerce(cls, options: Union["MatchOptions", Mapping[str, Any], None] = None,
               *, predicates: Optional[Mapping[str, PredicateFunc]] = None,
               single_node: Optional[bool] = None) -> "MatchOptions":
        """Build options from an instance, a mapping or keyword overrides."""
        if options is None:
            result = cls()
        elif isinstance(options, MatchOptions):
            result = cls(dict(options.predicates), options.single_node)
        else:
            unknown = set(options) - {"predicates", "single_node"}
            if unknown:
                raise TypeError(
                    f"unknown match options: {', '.join(sorted(unknown))}")
            result = cls(dict(options.get("predicates") or {}),
                         bool(options.get("single_node", False)))
        if predicates is not None:
            result.predicates = dict(predicates)
        if single_node is not None:
            result.single_node = single_node
        return result


__all__ = ["MatcherConfig", "MatchOptions", "PredicateFunc"]
