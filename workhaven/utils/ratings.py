"""Rating helpers: noise levels, per-spot averages and overall scores.

User ratings refine the spot's own amenity values. Every average falls back
to the spot's stored value when nobody has rated it yet.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Sequence


class NoiseRating(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: str | None, default: "NoiseRating | None" = None) -> "NoiseRating":
        """Case-insensitive lookup; unknown values map to ``default`` (Medium)."""
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return default or cls.MEDIUM


# Low=1 .. High=3, used for averaging user noise reports
NOISE_LEVELS: Dict[str, int] = {"Low": 1, "Medium": 2, "High": 3}
_LEVEL_TO_NOISE = {v: k for k, v in NOISE_LEVELS.items()}

# Quieter is better for the overall score
NOISE_SCORES: Dict[str, float] = {"Low": 5.0, "Medium": 3.0, "High": 1.0}

OUTLETS_YES_SCORE = 5.0
OUTLETS_NO_SCORE = 1.0

TOP_RATED_THRESHOLD = 4.0

RATING_DESCRIPTIONS: Sequence[tuple[float, str]] = (
    (4.5, "Excellent"),
    (3.5, "Good"),
    (2.5, "Average"),
    (1.5, "Poor"),
)
VERY_POOR = "Very Poor"
ALL_DESCRIPTIONS: List[str] = [label for _, label in RATING_DESCRIPTIONS] + [VERY_POOR]


def _ratings(spot) -> list:
    return list(getattr(spot, "user_ratings", None) or [])


def average_wifi_rating(spot) -> float:
    ratings = _ratings(spot)
    if not ratings:
        return float(spot.wifi_rating)
    return sum(float(r.wifi_rating) for r in ratings) / len(ratings)


def average_wifi_rating_stars(spot) -> str:
    filled = int(round(average_wifi_rating(spot)))
    return "★" * filled + "☆" * (5 - filled)


def average_noise_rating(spot) -> str:
    ratings = _ratings(spot)
    if not ratings:
        return spot.noise_rating or NoiseRating.LOW.value
    levels = [NOISE_LEVELS.get(r.noise_rating, 1) for r in ratings]
    # Integer mean, truncated toward the quieter level
    average = sum(levels) // len(levels)
    return _LEVEL_TO_NOISE.get(average, NoiseRating.LOW.value)


def average_outlets(spot) -> bool:
    ratings = _ratings(spot)
    if not ratings:
        return bool(spot.outlets)
    yes = sum(1 for r in ratings if r.outlets)
    return yes > len(ratings) // 2


def total_user_ratings(spot) -> int:
    return len(_ratings(spot))


def average_user_rating(spot) -> float:
    """Mean WiFi score across user ratings only (0.0 when there are none)."""
    ratings = _ratings(spot)
    if not ratings:
        return 0.0
    return sum(float(r.wifi_rating) for r in ratings) / len(ratings)


def overall_rating(spot) -> float:
    """Combine WiFi, noise and outlets into a single 0-5 score."""
    wifi = average_wifi_rating(spot)
    noise = NOISE_SCORES.get(average_noise_rating(spot), NOISE_SCORES["Medium"])
    outlets = OUTLETS_YES_SCORE if average_outlets(spot) else OUTLETS_NO_SCORE
    return round((wifi + noise + outlets) / 3.0, 2)


def rating_description(rating: float) -> str:
    for threshold, label in RATING_DESCRIPTIONS:
        if rating >= threshold:
            return label
    return VERY_POOR


def average_rating_across(spots: Iterable) -> float:
    spots = list(spots)
    if not spots:
        return 0.0
    return round(sum(overall_rating(s) for s in spots) / len(spots), 2)


def rating_distribution(spots: Iterable) -> Dict[str, int]:
    distribution: Dict[str, int] = {}
    for spot in spots:
        label = rating_description(overall_rating(spot))
        distribution[label] = distribution.get(label, 0) + 1
    return distribution


def rating_summary(spot) -> dict:
    """Computed rating fields merged into API responses."""
    overall = overall_rating(spot)
    return {
        "average_wifi_rating": round(average_wifi_rating(spot), 2),
        "average_noise_rating": average_noise_rating(spot),
        "average_outlets": average_outlets(spot),
        "total_user_ratings": total_user_ratings(spot),
        "overall_rating": overall,
        "rating_description": rating_description(overall),
    }
