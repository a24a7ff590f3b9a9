from flightdesk.models.preferences import BookingPattern, RouteFamiliarity, UserTravelPreferences

__all__ = [
    "BookingPattern",
    "RouteFamiliarity",
    "UserTravelPreferences",
]
