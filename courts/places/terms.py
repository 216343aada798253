"""
Sport to search-phrase table.

Every phrase becomes one text search per discovery pass, so a sport's
result volume scales with the number of phrases listed here.
"""

from typing import List

SPORT_SEARCH_TERMS = {
    "Tennis": ["tennis court", "tennis club", "tennis center"],
    "Pickleball": ["pickleball court", "pickleball club", "pickleball center"],
    "Basketball": ["basketball court", "basketball gym", "sports complex"],
    "Volleyball": ["volleyball court", "volleyball club", "beach volleyball"],
    "Badminton": ["badminton court", "badminton club", "badminton center"],
    "Padel": ["padel court", "padel club", "padel center"],
}

SUPPORTED_SPORTS = list(SPORT_SEARCH_TERMS)


def get_search_terms(sport_type: str) -> List[str]:
    """Search phrases for a sport; unknown sports fall back to "<sport> court"."""
    terms = SPORT_SEARCH_TERMS.get(sport_type)
    if terms:
        return list(terms)
    return [f"{sport_type.lower()} court"]
