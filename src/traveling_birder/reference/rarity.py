"""ABA rarity codes and observation-frequency tier thresholds."""

from __future__ import annotations

ABA_CODES: dict[int, str] = {
    1: "Common",
    2: "Uncommon",
    3: "Rare",
    4: "Very Rare",
    5: "Mega Rare",
    6: "Extirpated",
}

# Percent of raw-log observations (inclusive lower bounds), highest first.
EXPECTED_MIN_PCT: float = 30.0
UNCOMMON_MIN_PCT: float = 10.0
NOTABLE_MIN_PCT: float = 1.0


def aba_label(code: int | None) -> str | None:
    """Human label for an ABA code, or None if unknown/absent."""
    if code is None:
        return None
    return ABA_CODES.get(code)
