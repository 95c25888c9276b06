"""Test package structure and imports."""

import sys
from pathlib import Path

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))


def test_package_imports() -> None:
    """Test that reviewgen package can be imported."""
    import reviewgen

    assert reviewgen.__version__ == "0.1.0"


def test_lazy_exports() -> None:
    """Test that top-level names resolve to their implementations."""
    import reviewgen
    from reviewgen.api import generate_review
    from reviewgen.core import HybridGenerator
    from reviewgen.models import GenerationRequest

    assert reviewgen.generate_review is generate_review
    assert reviewgen.HybridGenerator is HybridGenerator
    assert reviewgen.GenerationRequest is GenerationRequest


def test_unknown_attribute_raises() -> None:
    import reviewgen

    with pytest.raises(AttributeError, match="no attribute 'missing'"):
        reviewgen.missing  # noqa: B018


def test_main_module_imports() -> None:
    """Test that main module can be imported without error."""
    from reviewgen.__main__ import main

    # Should be able to import the main function
    assert callable(main)
