# structured/errors.py
"""
Error types for the structural matcher.

Error Hierarchy:
────────────────
    StructuredError (base)
    ├── ProgramParseError            - program source rejected by the parser
    ├── TemplateSyntaxError          - template snippet malformed or wrongly shaped
    ├── PredicateConfigurationError  - predicate names an unknown variable / bad key
    └── StructuralInconsistency      - template and candidate field shapes disagree

Error Codes:
────────────
Each error carries a code of the form STRUCT-XXXX:
  - 1000-1999: Program parse errors
  - 2000-2999: Template errors
  - 3000-3999: Predicate configuration errors
  - 4000-4999: Structural inconsistencies (never escape the engine)

Only parse-time and template-shape problems reach the caller. Predicate
configuration errors are logged and recorded on the ``NoMatch`` result;
structural inconsistencies are local match failures.
"""

from __future__ import annotations

from typing import Optional


class StructuredError(Exception):
    """Base exception for all structural matcher errors."""

    code: str = "STRUCT-0000"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class SourceError(StructuredError):
    """An error that points at a position in parsed source text."""

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None,
                 description: Optional[str] = None):
        self.line = line
        self.column = column
        self.description = description or message
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class ProgramParseError(SourceError):
    """Raised when the program source cannot be parsed."""

    code = "STRUCT-1001"


class TemplateSyntaxError(SourceError):
    """Raised when a template snippet does not parse to a single function body."""

    code = "STRUCT-2001"


class PredicateConfigurationError(StructuredError):
    """A predicate group names a variable the template does not declare."""

    code = "STRUCT-3001"

    def __init__(self, group: str, message: str):
        self.group = group
        super().__init__(f"predicate '{group}': {message}")


class StructuralInconsistency(StructuredError):
    """A template field and a candidate field disagree in shape."""

    code = "STRUCT-4001"

    def __init__(self, field: str, expected: str, found: str):
        self.field = field
        self.expected = expected
        self.found = found
        super().__init__(
            f"field '{field}': template holds {expected}, candidate holds {found}")


__all__ = [
    "StructuredError",
    "SourceError",
    "ProgramParseError",
    "TemplateSyntaxError",
    "PredicateConfigurationError",
    "StructuralInconsistency",
]
