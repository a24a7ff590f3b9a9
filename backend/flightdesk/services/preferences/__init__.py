from flightdesk.services.preferences.engine import PreferenceEngine
from flightdesk.services.preferences.repository import (
    InMemoryPreferenceRepository,
    PreferenceRepository,
    SqlPreferenceRepository,
)
from flightdesk.services.preferences.scoring import ScoringParameters, generate_price_insight, score_offer

__all__ = [
    "InMemoryPreferenceRepository",
    "PreferenceEngine",
    "PreferenceRepository",
    "ScoringParameters",
    "SqlPreferenceRepository",
    "generate_price_insight",
    "score_offer",
]
