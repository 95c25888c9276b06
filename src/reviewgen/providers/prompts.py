"""Prompt construction for provider calls."""

from ..models import LANGUAGES, GenerationRequest

SYSTEM_PROMPT = (
    "You are a hotel review writer. Create authentic, natural-sounding reviews."
)

RATING_TONES: dict[int, str] = {
    5: "very positive and enthusiastic",
    4: "positive with minor observations",
    3: "balanced with pros and cons",
    2: "disappointed but constructive",
    1: "negative but professional",
}

VOICE_STYLES: dict[str, str] = {
    "professional": "Use a professional, businesslike tone.",
    "friendly": "Use a warm, conversational tone.",
    "enthusiastic": "Use an excited, energetic tone.",
    "detailed": "Be thorough and analytical.",
}


def rating_tone(rating: int) -> str:
    return RATING_TONES.get(rating, RATING_TONES[3])


def language_name(code: str) -> str:
    return LANGUAGES.get(code, "English")


def build_prompt(request: GenerationRequest) -> str:
    """Build the user prompt for a review request.

    Args:
        request: Validated generation request

    Returns:
        Prompt text containing tone, stay details, highlights, voice and,
        for non-English requests, a language instruction
    """
    prompt = (
        f"Write a {rating_tone(request.rating)} review for {request.subject_name}. "
    )
    guests = "guest" if request.guest_count == 1 else "guests"
    prompt += (
        f"This was a {request.stay_length}-night {request.trip_type} stay "
        f"for {request.guest_count} {guests}. "
    )

    if request.highlights:
        prompt += f"Highlight these aspects: {', '.join(request.highlights)}. "

    prompt += VOICE_STYLES.get(request.voice, VOICE_STYLES["friendly"])
    prompt += " Write naturally and authentically."

    if request.language != "en":
        prompt += f" Write in {language_name(request.language)}."

    return prompt
