"""Smoke tests for package imports.

This module verifies that all key packages can be imported successfully.
It serves as a basic sanity check for the project structure.
"""

import pytest


@pytest.mark.unit
class TestSmokeImports:
    """Smoke tests to verify all key packages are importable."""

    def test_import_conform_package(self) -> None:
        """Test that the top-level package exposes apply and register."""
        import conform
        assert callable(conform.apply)
        assert callable(conform.register)

    def test_import_core(self) -> None:
        """Test that the core package can be imported."""
        from conform import core
        assert core is not None

    def test_import_core_trace(self) -> None:
        """Test that the core.trace subpackage can be imported."""
        from conform.core import trace
        assert trace is not None

    def test_import_engine(self) -> None:
        """Test that the engine package can be imported."""
        from conform import engine
        assert engine is not None

    def test_import_libs_transform(self) -> None:
        """Test that the libs.transform subpackage can be imported."""
        from conform.libs import transform
        assert transform is not None

    def test_import_observability(self) -> None:
        """Test that the observability package can be imported."""
        from conform import observability
        assert observability is not None
