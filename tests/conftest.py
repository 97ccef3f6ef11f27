# tests/conftest.py
"""
Shared fixtures for the structured test suite.
"""

import pytest

from structured.matcher import StructureMatcher
from structured.parser import parse_program
from structured.template import TemplateCache


@pytest.fixture
def matcher():
    """A matcher with its own, empty caches."""
    return StructureMatcher()


@pytest.fixture
def template_cache():
    return TemplateCache()


@pytest.fixture
def numbers_program():
    return parse_program("var a = 5; var b = 20; var c = 3;")
