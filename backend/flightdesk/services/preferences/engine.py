"""Learns from bookings and ranks offers for a traveler."""

import logging

from flightdesk.schemas.preferences import (
    AirlinePreference,
    BookingData,
    LoyaltyAirline,
    OfferScore,
    Recommendation,
    RouteFamiliarityData,
    RouteSummary,
    ScoredOffer,
    TravelDNA,
    UserPreferences,
)
from flightdesk.schemas.supply import FlightOffer
from flightdesk.services.preferences import learning
from flightdesk.services.preferences.repository import PreferenceRepository
from flightdesk.services.preferences.scoring import (
    DEFAULT_PARAMETERS,
    ScoringParameters,
    generate_price_insight,
    score_offer,
)

logger = logging.getLogger(__name__)

# Offers shown per familiarity level
RESULT_LIMITS = {"autopilot": 1, "learning": 3, "discovery": 5}

ONBOARDING_SEED_SCORE = 0.3
TOP_ROUTES = 5


class PreferenceEngine:
    """Learns a traveler's route habits and ranks offers against them."""

    def __init__(self, repository: PreferenceRepository, params: ScoringParameters = DEFAULT_PARAMETERS):
        self.repository = repository
        self.params = params

    # --- Learning ---

    async def learn_from_booking(self, user_id: str, booking: BookingData) -> None:
        """Record a completed booking and recompute route and global statistics."""
        await self.repository.add_booking_pattern(user_id, learning.to_pattern_record(booking))

        route_rows = await self.repository.list_booking_patterns(user_id, route=booking.route)
        route_data = learning.compute_route_familiarity(booking.route, route_rows)
        await self.repository.upsert_route_familiarity(user_id, route_data)

        recent = await self.repository.list_booking_patterns(user_id, limit=learning.RECENT_WINDOW)
        current = await self.repository.get_preferences(user_id) or UserPreferences(user_id=user_id)
        await self.repository.upsert_preferences(
            learning.update_preferences(current, recent, self.params.sensitivity_offset)
        )

        logger.info(
            f"Learned booking for {user_id} on {booking.route}: "
            f"{route_data.times_booked} trips, {route_data.familiarity_level}"
        )

    # --- Reads ---

    async def get_preferences(self, user_id: str) -> UserPreferences:
        """Stored preferences; defaults are created and saved for a new traveler."""
        preferences = await self.repository.get_preferences(user_id)
        if preferences is None:
            preferences = UserPreferences(user_id=user_id)
            await self.repository.upsert_preferences(preferences)
        return preferences

    async def get_route_familiarity(self, user_id: str, route: str) -> RouteFamiliarityData:
        data = await self.repository.get_route_familiarity(user_id, route)
        return data or RouteFamiliarityData(route=route)

    # --- Scoring ---

    def score_offer(
        self, offer: FlightOffer, preferences: UserPreferences, route_data: RouteFamiliarityData
    ) -> OfferScore:
        return score_offer(offer, preferences, route_data, self.params)

    def generate_price_insight(self, price: float, currency: str, route_data: RouteFamiliarityData) -> str | None:
        return generate_price_insight(price, currency, route_data)

    async def get_recommendation(self, user_id: str, route: str, offers: list[FlightOffer]) -> Recommendation:
        preferences = await self.get_preferences(user_id)
        route_data = await self.get_route_familiarity(user_id, route)

        scored = [
            ScoredOffer(
                offer=offer,
                score=self.score_offer(offer, preferences, route_data),
                price_insight=generate_price_insight(offer.price.total, offer.price.currency, route_data),
            )
            for offer in offers
        ]
        # Stable: equal scores keep input order
        scored.sort(key=lambda s: s.score.score, reverse=True)

        level = route_data.familiarity_level
        commentary = None
        if scored and level == "autopilot":
            commentary = f"Based on your {route_data.times_booked} previous trips, this is your best match."
        elif scored and level == "learning" and route_data.preferred_airline_name:
            commentary = (
                f"Based on your last few trips, I'd go with the {route_data.preferred_airline_name} option."
            )

        return Recommendation(
            familiarity_level=level,
            offers=scored[: RESULT_LIMITS[level]],
            commentary=commentary,
        )

    # --- Onboarding / profile ---

    async def seed_from_onboarding(
        self,
        user_id: str,
        home_airport: str | None = None,
        seat_preference: str | None = None,
        loyalty_airlines: list[LoyaltyAirline] | None = None,
    ) -> UserPreferences:
        """Seed preferences from onboarding answers; loyalty airlines get a small positive score."""
        current = await self.repository.get_preferences(user_id) or UserPreferences(user_id=user_id)
        seeded = current.model_copy(
            update={
                "home_airport": home_airport or "BLR",
                "seat_preference": seat_preference or "aisle",
                "preferred_airlines": [
                    AirlinePreference(code=a.code, name=a.name or a.code, score=ONBOARDING_SEED_SCORE)
                    for a in loyalty_airlines or []
                ],
            }
        )
        await self.repository.upsert_preferences(seeded)
        return seeded

    async def get_travel_dna(self, user_id: str) -> TravelDNA:
        preferences = await self.get_preferences(user_id)
        routes = await self.repository.list_route_familiarity(user_id)
        patterns = await self.repository.list_booking_patterns(user_id)

        return TravelDNA(
            total_bookings=await self.repository.count_booking_patterns(user_id),
            routes_learned=sum(1 for r in routes if r.familiarity_level != "discovery"),
            preferences=preferences,
            top_routes=[
                RouteSummary(
                    route=r.route,
                    times_booked=r.times_booked,
                    familiarity_level=r.familiarity_level,
                    avg_price=r.avg_price_paid,
                )
                for r in routes[:TOP_ROUTES]
            ],
            airline_usage=learning.compute_airline_usage(patterns),
        )
