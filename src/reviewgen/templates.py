"""Template-based review generation used when no provider answers.

Pure and I/O free: the only variability is which template of the rating's
bucket is picked, drawn from the injected random source.
"""

import random
from dataclasses import dataclass

from .models import GenerationRequest

GENERIC_HIGHLIGHTS = "The overall experience was as expected."

HIGHLIGHT_PHRASES: dict[str, str] = {
    "location": "the location",
    "cleanliness": "the cleanliness",
    "comfort": "the comfortable beds",
    "service": "the service",
    "breakfast": "the breakfast",
    "wifi": "the WiFi",
    "value": "the value for money",
    "amenities": "the amenities",
}

HIGHLIGHT_LABELS: dict[str, str] = {
    "location": "Location",
    "cleanliness": "Cleanliness",
    "comfort": "Comfort",
    "service": "Service",
    "breakfast": "Breakfast",
    "wifi": "WiFi",
    "value": "Value for Money",
    "amenities": "Amenities",
}


@dataclass(frozen=True)
class Template:
    """A review template: a fixed opening followed by a formatted body.

    Body placeholders: {name}, {trip_type}, {nights}, {highlights}.
    """

    opening: str
    body: str

    def render(self, **values: object) -> str:
        return f"{self.opening} {self.body.format(**values)}"


TEMPLATES: dict[int, tuple[Template, ...]] = {
    5: (
        Template(
            "What an incredible stay!",
            "Our {nights}-night {trip_type} trip at {name} was nothing short of "
            "magical. {highlights} Every moment felt curated just for us.",
        ),
        Template(
            "Simply outstanding from start to finish.",
            "{name} turned our {nights}-night {trip_type} stay into a masterclass "
            "in hospitality. {highlights} I would recommend it without hesitation.",
        ),
        Template(
            "This place exceeded every expectation.",
            "For {trip_type} travelers, {name} is hard to beat. {highlights} "
            "We are already planning our next {nights}-night visit.",
        ),
    ),
    4: (
        Template(
            "A genuinely good stay.",
            "{name} delivered a solid {nights}-night {trip_type} experience that "
            "was a step above the ordinary. {highlights} Not flawless, but very good.",
        ),
        Template(
            "Pleasantly surprised overall.",
            "Our {trip_type} stay at {name} went smoothly across all {nights} "
            "nights. {highlights} Would recommend.",
        ),
        Template(
            "A dependable choice.",
            "{name} handled our {nights}-night {trip_type} trip well. {highlights} "
            "Most aspects met or exceeded expectations.",
        ),
    ),
    3: (
        Template(
            "It did the job.",
            "{name} provided what we needed for a {nights}-night {trip_type} stay, "
            "no more and no less. {highlights} Some aspects could be better.",
        ),
        Template(
            "An average experience.",
            "As a base for our {trip_type} trip, {name} was functional for "
            "{nights} nights. {highlights} Nothing spectacular, but adequate.",
        ),
        Template(
            "Fine, if unremarkable.",
            "{name} checks the basic boxes for a {trip_type} journey. {highlights} "
            "Just don't expect to be wowed during a {nights}-night stay.",
        ),
    ),
    2: (
        Template(
            "Unfortunately this stay fell short.",
            "Our {nights}-night {trip_type} trip at {name} felt like a series of "
            "missed opportunities. {highlights} Several areas need improvement.",
        ),
        Template(
            "Not what we hoped for.",
            "{name} seemed to be trying, but our {trip_type} stay was more about "
            "managing expectations than enjoying them. {highlights}",
        ),
        Template(
            "A disappointing visit.",
            "Minor inconveniences added up over {nights} nights at {name}. "
            "{highlights} Hard to recommend for {trip_type} travelers.",
        ),
    ),
    1: (
        Template(
            "I cannot recommend this hotel.",
            "Our {nights}-night {trip_type} stay at {name} was a lesson in how not "
            "to run a hotel. {highlights} Significant improvements are needed.",
        ),
        Template(
            "A very poor experience.",
            "{name} let us down throughout our {trip_type} trip. {highlights} "
            "Save yourself the trouble and look elsewhere.",
        ),
        Template(
            "One of the worst stays I have had.",
            "Over {nights} nights, {name} managed to get almost everything wrong. "
            "{highlights} An absolute disappointment for a {trip_type} trip.",
        ),
    ),
}

OPENINGS: dict[int, tuple[str, ...]] = {
    rating: tuple(template.opening for template in templates)
    for rating, templates in TEMPLATES.items()
}


def _phrase(highlight: str) -> str:
    return HIGHLIGHT_PHRASES.get(highlight.lower(), f"the {highlight}")


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def highlights_to_text(highlights: tuple[str, ...] | list[str]) -> str:
    """Render highlights as one sentence.

    0 highlights: generic filler
    1: "The X stood out."
    2: "The X and the Y were notable."
    3+: "The X, the Y, and the Z were all highlights."
    """
    phrases = [_phrase(h) for h in highlights]
    if not phrases:
        return GENERIC_HIGHLIGHTS
    if len(phrases) == 1:
        return f"{_capitalize(phrases[0])} stood out."
    if len(phrases) == 2:
        return f"{_capitalize(phrases[0])} and {phrases[1]} were notable."
    listed = ", ".join(phrases[:-1])
    return f"{_capitalize(listed)}, and {phrases[-1]} were all highlights."


class TemplateGenerator:
    """Deterministic-shape review generator backed by TEMPLATES."""

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize generator.

        Args:
            rng: Random source for template choice (seeded Random in tests)
        """
        self._rng = rng or random.Random()

    def generate(self, request: GenerationRequest) -> str:
        templates = TEMPLATES.get(request.rating, TEMPLATES[3])
        template = self._rng.choice(templates)
        return template.render(
            name=request.subject_name,
            trip_type=request.trip_type,
            nights=request.stay_length,
            highlights=highlights_to_text(request.highlights),
        )

    def get_available_highlights(self) -> list[dict[str, str]]:
        return [{"key": key, "label": label} for key, label in HIGHLIGHT_LABELS.items()]
