"""reviewgen - resilient hotel review generation with provider fallback."""

__version__ = "0.1.0"
__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "HybridConfig",
    "HybridGenerator",
    "generate_review",
]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "generate_review":
        from .api import generate_review

        return generate_review
    if name == "HybridGenerator":
        from .core import HybridGenerator

        return HybridGenerator
    if name == "HybridConfig":
        from .config import HybridConfig

        return HybridConfig
    if name in ("GenerationRequest", "GenerationResult"):
        from . import models

        return getattr(models, name)
    raise AttributeError(f"module 'reviewgen' has no attribute {name!r}")
