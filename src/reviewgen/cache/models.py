"""Data models for the response cache."""

import json
from dataclasses import dataclass

from ..models import GenerationRequest


@dataclass
class CacheEntry:
    """Cached review text for one request fingerprint.

    Attributes:
        text: Generated review text
        expires_at: Clock reading after which the entry is no longer served
        created_at: Clock reading when the entry was written
    """

    text: str
    expires_at: float
    created_at: float

    def is_valid(self, now: float) -> bool:
        return self.expires_at > now


def make_fingerprint(request: GenerationRequest) -> str:
    """Derive the cache key for a request.

    Only subject, rating, trip type and the sorted highlights take part, so
    requests that differ in highlight order, voice, language, guest count or
    stay length share a slot.
    """
    return json.dumps(
        {
            "subject": request.subject_name,
            "rating": request.rating,
            "trip_type": request.trip_type,
            "highlights": sorted(request.highlights),
        },
        sort_keys=True,
        separators=(",", ":"),
    )
