"""Unit tests for request/result data models validation logic."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from reviewgen.models import GenerationRequest, GenerationResult


class TestGenerationRequest:
    """Test GenerationRequest validation and normalization."""

    def test_defaults(self) -> None:
        """Test that optional fields take documented defaults."""
        request = GenerationRequest(subject_name="Grand Hotel", rating=4)

        assert request.trip_type == "leisure"
        assert request.highlights == ()
        assert request.stay_length == 3
        assert request.guest_count == 2
        assert request.language == "en"
        assert request.voice == "friendly"

    def test_highlights_deduplicated_keeping_first_occurrence(self) -> None:
        """Test that highlights behave as an ordered set."""
        request = GenerationRequest(
            subject_name="Grand Hotel",
            rating=4,
            highlights=("pool", "wifi", "pool", "breakfast", "wifi"),
        )

        assert request.highlights == ("pool", "wifi", "breakfast")

    def test_highlights_accept_list(self) -> None:
        """Test that a list of highlights is normalized to a tuple."""
        request = GenerationRequest(
            subject_name="Grand Hotel", rating=4, highlights=["pool"]  # type: ignore[arg-type]
        )
        assert request.highlights == ("pool",)

    def test_subject_and_language_normalized(self) -> None:
        """Test that subject is stripped and language lowercased."""
        request = GenerationRequest(subject_name="  Grand Hotel ", rating=3, language="FR")

        assert request.subject_name == "Grand Hotel"
        assert request.language == "fr"

    def test_request_is_immutable(self) -> None:
        """Test that requests cannot be mutated after construction."""
        request = GenerationRequest(subject_name="Grand Hotel", rating=3)

        with pytest.raises(AttributeError):
            request.rating = 5  # type: ignore[misc]

    def test_empty_subject_raises_error(self) -> None:
        """Test that empty subject_name raises ValueError."""
        with pytest.raises(ValueError, match="subject_name cannot be empty"):
            GenerationRequest(subject_name="   ", rating=3)

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range_raises_error(self, rating: int) -> None:
        """Test that ratings outside 1-5 are rejected."""
        with pytest.raises(ValueError, match="rating must be between 1 and 5"):
            GenerationRequest(subject_name="Grand Hotel", rating=rating)

    def test_non_integer_rating_raises_error(self) -> None:
        """Test that float and bool ratings are rejected."""
        with pytest.raises(ValueError, match="rating must be an integer"):
            GenerationRequest(subject_name="Grand Hotel", rating=4.5)  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="rating must be an integer"):
            GenerationRequest(subject_name="Grand Hotel", rating=True)

    def test_unknown_trip_type_raises_error(self) -> None:
        """Test that trip_type must be one of the known values."""
        with pytest.raises(ValueError, match="trip_type must be one of"):
            GenerationRequest(subject_name="Grand Hotel", rating=3, trip_type="cruise")  # type: ignore[arg-type]

    def test_unknown_voice_raises_error(self) -> None:
        """Test that voice must be one of the known values."""
        with pytest.raises(ValueError, match="voice must be one of"):
            GenerationRequest(subject_name="Grand Hotel", rating=3, voice="angry")  # type: ignore[arg-type]

    def test_zero_nights_raises_error(self) -> None:
        """Test that stay_length must be at least one night."""
        with pytest.raises(ValueError, match="stay_length must be at least 1"):
            GenerationRequest(subject_name="Grand Hotel", rating=3, stay_length=0)

    def test_zero_guests_raises_error(self) -> None:
        """Test that guest_count must be at least one."""
        with pytest.raises(ValueError, match="guest_count must be at least 1"):
            GenerationRequest(subject_name="Grand Hotel", rating=3, guest_count=0)


class TestGenerationResult:
    """Test GenerationResult serialization."""

    def test_to_dict_is_json_ready(self) -> None:
        """Test that to_dict returns every field."""
        result = GenerationResult(
            text="Great stay.",
            source="template",
            latency_ms=2,
            cost=0.0,
            request_id="req_1_abcdef012",
            timestamp="2024-01-01T00:00:00+00:00",
        )

        assert result.to_dict() == {
            "text": "Great stay.",
            "source": "template",
            "latency_ms": 2,
            "cost": 0.0,
            "request_id": "req_1_abcdef012",
            "timestamp": "2024-01-01T00:00:00+00:00",
            "cached": False,
            "provider": None,
        }
