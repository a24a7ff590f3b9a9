"""Static airline and airport name lookups used when a supplier omits them."""

# Airline name lookup (common ones)
AIRLINE_NAMES: dict[str, str] = {
    "AA": "American Airlines", "BA": "British Airways", "DL": "Delta Air Lines",
    "UA": "United Airlines", "VS": "Virgin Atlantic", "AF": "Air France",
    "LH": "Lufthansa", "EK": "Emirates", "QR": "Qatar Airways",
    "SQ": "Singapore Airlines", "CX": "Cathay Pacific", "QF": "Qantas",
    "JL": "Japan Airlines", "NH": "ANA", "TK": "Turkish Airlines",
    "EY": "Etihad Airways", "KL": "KLM", "IB": "Iberia", "AY": "Finnair",
    "SK": "SAS", "LX": "Swiss", "OS": "Austrian Airlines", "TP": "TAP Portugal",
    "AC": "Air Canada", "WN": "Southwest Airlines", "B6": "JetBlue",
    "AS": "Alaska Airlines", "NK": "Spirit Airlines", "F9": "Frontier Airlines",
    "G4": "Allegiant Air", "HA": "Hawaiian Airlines",
    # India
    "AI": "Air India", "6E": "IndiGo", "UK": "Vistara", "SG": "SpiceJet",
    "QP": "Akasa Air", "IX": "Air India Express",
}

# Airlines the offline generator draws from
MOCK_AIRLINES: tuple[tuple[str, str], ...] = (
    ("BA", "British Airways"),
    ("AA", "American Airlines"),
    ("UA", "United Airlines"),
    ("DL", "Delta Air Lines"),
    ("VS", "Virgin Atlantic"),
)


def airline_name(code: str, carriers: dict[str, str] | None = None) -> str:
    """Resolve a carrier name: response dictionary, then static table, then the code."""
    if carriers and code in carriers:
        return carriers[code]
    return AIRLINE_NAMES.get(code, code)
