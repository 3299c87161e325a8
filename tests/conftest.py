"""
Pytest configuration and shared fixtures for all schemac tests.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from schemac.compiler.driver import CompilerDriver
from schemac.frontend.tensor_type_parser import TensorTypeParser
from schemac.passes.base import CompileContext


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_compiler():
    """
    Session-scoped compiler shared across ALL tests.

    The driver is stateless: fresh context and pass instances per compilation,
    so sharing it only saves building the tensor type parser.
    """
    return CompilerDriver()


@pytest.fixture(scope="session")
def tensor_parser():
    """Session-scoped tensor type parser (grammar loaded once)."""
    return TensorTypeParser(cache_file=None)


# =============================================================================
# Class/function-scoped fixtures
# =============================================================================

@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - returns session compiler (stateless, safe to share)."""
    return session_compiler


@pytest.fixture
def ctx():
    """Fresh compile context per test."""
    return CompileContext()
