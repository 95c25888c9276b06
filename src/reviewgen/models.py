"""Request and result data models with validation."""

from dataclasses import asdict, dataclass
from typing import Any, Literal

TripType = Literal["business", "leisure", "family", "romance", "vacation"]
Voice = Literal["professional", "friendly", "enthusiastic", "detailed"]
Source = Literal["cache", "primary", "fallback", "template", "emergency"]

TRIP_TYPES: tuple[str, ...] = ("business", "leisure", "family", "romance", "vacation")
VOICES: tuple[str, ...] = ("professional", "friendly", "enthusiastic", "detailed")
SOURCES: tuple[str, ...] = ("cache", "primary", "fallback", "template", "emergency")

LANGUAGES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ja": "Japanese",
    "zh": "Chinese",
    "el": "Greek",
}


@dataclass(frozen=True)
class GenerationRequest:
    """Structured description of a hotel stay to write a review for.

    Args:
        subject_name: Name of the hotel being reviewed
        rating: Star rating from 1 to 5
        trip_type: One of TRIP_TYPES
        highlights: Aspects to mention, in order (duplicates are dropped)
        stay_length: Number of nights stayed
        guest_count: Number of guests
        language: ISO language code for the review
        voice: Writing voice, one of VOICES
    """

    subject_name: str
    rating: int
    trip_type: TripType = "leisure"
    highlights: tuple[str, ...] = ()
    stay_length: int = 3
    guest_count: int = 2
    language: str = "en"
    voice: Voice = "friendly"

    def __post_init__(self) -> None:
        """Validate and normalize request fields."""
        if not self.subject_name or not self.subject_name.strip():
            raise ValueError("subject_name cannot be empty")
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ValueError(f"rating must be an integer, got {self.rating!r}")
        if not 1 <= self.rating <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {self.rating}")
        if self.trip_type not in TRIP_TYPES:
            raise ValueError(
                f"trip_type must be one of {', '.join(TRIP_TYPES)}, got {self.trip_type!r}"
            )
        if self.voice not in VOICES:
            raise ValueError(
                f"voice must be one of {', '.join(VOICES)}, got {self.voice!r}"
            )
        if self.stay_length < 1:
            raise ValueError(f"stay_length must be at least 1, got {self.stay_length}")
        if self.guest_count < 1:
            raise ValueError(f"guest_count must be at least 1, got {self.guest_count}")
        if not self.language or not self.language.strip():
            raise ValueError("language cannot be empty")

        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "subject_name", self.subject_name.strip())
        object.__setattr__(self, "language", self.language.strip().lower())
        object.__setattr__(self, "highlights", _ordered_set(self.highlights))


def _ordered_set(highlights: Any) -> tuple[str, ...]:
    if isinstance(highlights, str):
        highlights = (highlights,)
    seen: dict[str, None] = {}
    for item in highlights or ():
        value = str(item).strip()
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


@dataclass
class GenerationResult:
    """Outcome of a single generate() call.

    Attributes:
        text: Generated review text
        source: Tier that produced the text
        latency_ms: Wall time spent inside generate(), rounded to milliseconds
        cost: Estimated spend in USD (nonzero only for the primary provider)
        request_id: Identifier of the request, "req_<epoch ms>_<suffix>"
        timestamp: ISO-8601 UTC time the result was produced
        cached: True when the text came from the cache
        provider: Provider name for provider tiers, None otherwise
    """

    text: str
    source: Source
    latency_ms: int
    cost: float
    request_id: str
    timestamp: str
    cached: bool = False
    provider: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ProviderResponse:
    """Parsed response from a provider call."""

    text: str
    tokens: int
    model: str
    provider: str
