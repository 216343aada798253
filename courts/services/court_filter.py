"""
Court Filter.

Decides whether a place-details record from the places provider is a
plausible sports court, and maps accepted records onto Court fields.

Rules, evaluated in order (first match wins):
1. Permanently closed businesses are rejected
2. A blacklist term anywhere in the name or address rejects the place,
   even when a sport keyword is also present
3. An excluded category (stores, malls, agencies) rejects the place
4. The place is accepted if its name has a sport/venue keyword, its
   categories intersect the relevant set, or it is a park

Terms are matched as plain substrings of the lowercased text.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from courts.models import (
    DiscoverySource,
    Lighting,
    SurfaceType,
    VerificationStatus,
)

logger = logging.getLogger(__name__)

BLACKLIST_TERMS = [
    # Retail
    "supply", "store", "shop", "retail", "equipment", "gear", "apparel", "clothing",
    "pro shop", "sports store", "outlet", "warehouse", "depot", "mart",
    # Corporate entities
    "llc", "inc", "corp", "company", "corporation", "enterprises", "ltd",
    # Online / domain-like
    ".com", ".net", ".org", "website", "online", "digital", "web",
    # Manufacturing and distribution
    "manufacturer", "distributor", "wholesale", "manufacturing", "factory",
    # Generic education
    "academy", "school", "university", "college", "institute",
    # Services
    "repair", "service", "maintenance", "consulting", "stringing",
    # Real estate
    "real estate", "property", "development", "construction",
]

EXCLUDED_TYPES = {
    "clothing_store",
    "sporting_goods_store",
    "store",
    "shoe_store",
    "electronics_store",
    "shopping_mall",
    "department_store",
    "insurance_agency",
    "finance",
    "real_estate_agency",
}

SPORT_KEYWORDS = [
    "tennis", "pickleball", "basketball", "volleyball", "badminton", "padel",
    "court", "courts", "club", "center", "centre", "complex", "facility", "park",
    "recreation", "sports", "athletic", "country club", "racquet", "racket",
]

RELEVANT_TYPES = {
    "establishment",
    "point_of_interest",
    "park",
    "gym",
    "sports_complex",
    "stadium",
    "school",
    "university",
    "recreation",
    "tourist_attraction",
}

# Fields a later discovery pass may refresh on an existing court
ENRICHMENT_FIELDS = [
    "external_rating",
    "external_rating_count",
    "phone_number",
    "website_url",
    "opening_hours",
    "price_level",
    "photos",
]


@dataclass
class NormalizedCourt:
    """A provider place mapped onto Court fields, ready for deduplication."""

    name: str
    sport_types: List[str]
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    external_place_id: Optional[str] = None
    external_rating: Optional[float] = None
    external_rating_count: Optional[int] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    price_level: Optional[int] = None
    photos: Optional[List[Dict[str, Any]]] = None

    verification_status: str = VerificationStatus.PENDING
    discovery_source: str = DiscoverySource.GOOGLE_PLACES

    # Unknown until someone verifies the venue
    surface_type: Optional[str] = SurfaceType.UNKNOWN
    lighting: str = Lighting.UNKNOWN
    court_count: Optional[int] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def enrichment_values(self) -> Dict[str, Any]:
        """Enrichment fields that carry a value (None means "keep existing")."""
        values = {}
        for name in ENRICHMENT_FIELDS:
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        return values

    def to_model_fields(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Accepted:
    court: NormalizedCourt
    accepted = True


@dataclass
class Rejected:
    reason: str
    accepted = False


Classification = Union[Accepted, Rejected]


def normalize_place(details: Dict[str, Any], sport_type: str) -> NormalizedCourt:
    """
    Map a place-details record onto Court fields.

    Photos keep only the reference and dimensions; opening hours keep the
    open-now flag, periods and weekday text.
    """
    location = (details.get("geometry") or {}).get("location") or {}
    latitude = location.get("lat")
    longitude = location.get("lng")
    if latitude is None or longitude is None:
        latitude = longitude = None

    hours = details.get("opening_hours")
    opening_hours = None
    if hours:
        opening_hours = {
            "open_now": hours.get("open_now"),
            "periods": hours.get("periods"),
            "weekday_text": hours.get("weekday_text"),
        }

    photos = None
    if details.get("photos"):
        photos = [
            {
                "photo_reference": photo.get("photo_reference"),
                "width": photo.get("width"),
                "height": photo.get("height"),
            }
            for photo in details["photos"]
        ]

    return NormalizedCourt(
        name=(details.get("name") or "").strip(),
        sport_types=[sport_type],
        address=details.get("formatted_address") or "",
        latitude=latitude,
        longitude=longitude,
        external_place_id=details.get("place_id"),
        external_rating=details.get("rating"),
        external_rating_count=details.get("user_ratings_total"),
        phone_number=details.get("formatted_phone_number"),
        website_url=details.get("website"),
        opening_hours=opening_hours,
        price_level=details.get("price_level"),
        photos=photos,
    )


class CourtFilter:
    """
    Classifies place-details records as courts or not.

    Usage:
        outcome = CourtFilter().classify(details, "Tennis")
        if outcome.accepted:
            candidate = outcome.court
    """

    def classify(self, details: Dict[str, Any], sport_type: str) -> Classification:
        """
        Accept or reject a place.

        Args:
            details: Place-details record from the provider
            sport_type: Sport the discovery pass is searching for

        Returns:
            Accepted(NormalizedCourt) or Rejected(reason)
        """
        reason = self.rejection_reason(details)
        if reason:
            logger.debug("Rejected %r: %s", details.get("name"), reason)
            return Rejected(reason)
        return Accepted(normalize_place(details, sport_type))

    def rejection_reason(self, details: Dict[str, Any]) -> Optional[str]:
        """Return why a place is not a court, or None if it looks like one."""
        if details.get("business_status") == "CLOSED_PERMANENTLY":
            return "permanently_closed"

        name = (details.get("name") or "").lower()
        address = (details.get("formatted_address") or "").lower()
        combined = f"{name} {address}"

        for term in BLACKLIST_TERMS:
            if term in combined:
                return f"blacklisted_term:{term}"

        types = details.get("types") or []
        for place_type in types:
            if place_type in EXCLUDED_TYPES:
                return f"excluded_type:{place_type}"

        has_relevant_name = any(keyword in name for keyword in SPORT_KEYWORDS)
        has_relevant_type = any(place_type in RELEVANT_TYPES for place_type in types)
        is_park = "park" in types or "park" in name

        if has_relevant_name or has_relevant_type or is_park:
            return None
        return "not_relevant"
