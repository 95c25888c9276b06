"""High-level API for reviewgen library usage."""

from collections.abc import Iterable, Mapping
from typing import Any

from .config import HybridConfig
from .core import HybridGenerator
from .models import GenerationRequest, GenerationResult


async def generate_review(
    subject_name: str,
    rating: int,
    trip_type: str = "leisure",
    highlights: Iterable[str] = (),
    stay_length: int = 3,
    guest_count: int = 2,
    language: str = "en",
    voice: str = "friendly",
    config: HybridConfig | Mapping[str, Any] | None = None,
) -> GenerationResult:
    """Generate one review with a short-lived generator.

    Args:
        subject_name: Name of the hotel being reviewed
        rating: Star rating from 1 to 5
        trip_type: business, leisure, family, romance or vacation
        highlights: Aspects to mention
        stay_length: Number of nights stayed
        guest_count: Number of guests
        language: ISO language code
        voice: professional, friendly, enthusiastic or detailed
        config: HybridConfig or nested mapping (defaults if None)

    Returns:
        GenerationResult for the request

    Raises:
        ValueError: If the request or config is invalid
    """
    request = GenerationRequest(
        subject_name=subject_name,
        rating=rating,
        trip_type=trip_type,  # type: ignore[arg-type]
        highlights=tuple(highlights),
        stay_length=stay_length,
        guest_count=guest_count,
        language=language,
        voice=voice,  # type: ignore[arg-type]
    )

    async with HybridGenerator(config) as generator:
        return await generator.generate(request)
