"""Duration formatting shared by the supplier mappers."""

import re
from datetime import datetime

_ISO_DURATION = re.compile(r"^P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?")


def format_minutes(total_minutes: int) -> str:
    """Format minutes as ``"7h 30m"``, dropping a zero part."""
    total_minutes = max(0, int(total_minutes))
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def parse_iso_duration_minutes(duration: str | None) -> int | None:
    """Parse ISO 8601 durations like ``PT7H30M`` or ``P1DT2H`` into minutes."""
    if not duration or not duration.startswith("P"):
        return None
    match = _ISO_DURATION.match(duration)
    if not match or not any(match.groups()):
        return None
    days, hours, minutes = (int(g) if g else 0 for g in match.groups())
    return days * 24 * 60 + hours * 60 + minutes


def format_iso_duration(duration: str | None) -> str | None:
    """``PT7H30M`` -> ``"7h 30m"``. None when unparseable or zero."""
    minutes = parse_iso_duration_minutes(duration)
    if not minutes:
        return None
    return format_minutes(minutes)


def compute_duration(departure_at: str, arrival_at: str) -> str:
    """Elapsed time between two ISO timestamps as ``"Xh Ym"``."""
    dep = datetime.fromisoformat(departure_at.replace("Z", "+00:00"))
    arr = datetime.fromisoformat(arrival_at.replace("Z", "+00:00"))
    if (dep.tzinfo is None) != (arr.tzinfo is None):
        dep = dep.replace(tzinfo=None)
        arr = arr.replace(tzinfo=None)
    return format_minutes(round((arr - dep).total_seconds() / 60))
