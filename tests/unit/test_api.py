"""Unit tests for API module logic."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from reviewgen.api import generate_review
from reviewgen.models import GenerationRequest

OFFLINE_CONFIG = {
    "monitoring": {"enabled": False},
    "providers": [
        {"name": "openai", "model": "gpt-4o-mini", "enabled": False},
        {"name": "groq", "model": "mixtral-8x7b-32768", "enabled": False},
    ],
}


class TestGenerateReview:
    """Test generate_review parameter handling."""

    @pytest.mark.asyncio
    @patch("reviewgen.api.HybridGenerator.generate", new_callable=AsyncMock)
    async def test_builds_request_from_arguments(self, mock_generate: AsyncMock) -> None:
        """Test that arguments are turned into a validated request."""
        mock_generate.return_value = "sentinel"

        result = await generate_review(
            "Grand Hotel",
            4,
            trip_type="business",
            highlights=["wifi", "wifi", "location"],
            stay_length=2,
            guest_count=1,
            language="es",
            voice="detailed",
            config=OFFLINE_CONFIG,
        )

        assert result == "sentinel"
        mock_generate.assert_called_once_with(
            GenerationRequest(
                subject_name="Grand Hotel",
                rating=4,
                trip_type="business",
                highlights=("wifi", "location"),
                stay_length=2,
                guest_count=1,
                language="es",
                voice="detailed",
            )
        )

    @pytest.mark.asyncio
    async def test_invalid_request_raises_before_generation(self) -> None:
        with pytest.raises(ValueError, match="rating must be between 1 and 5"):
            await generate_review("Grand Hotel", 9, config=OFFLINE_CONFIG)

    @pytest.mark.asyncio
    async def test_offline_generation_uses_templates(self) -> None:
        result = await generate_review(
            "Grand Hotel", 5, highlights=["pool"], config=OFFLINE_CONFIG
        )

        assert result.source == "template"
        assert "Grand Hotel" in result.text
        assert result.cost == 0.0
