"""
Great-circle geometry helpers.

Distances are computed with the haversine formula on a spherical Earth,
which is accurate to well under a meter at the short ranges used for
duplicate detection and within a fraction of a percent at search radii.
"""

import math
from typing import Tuple

EARTH_RADIUS_METERS = 6_371_000

# Length of one degree of latitude in meters
METERS_PER_DEGREE = math.pi * EARTH_RADIUS_METERS / 180


def haversine_distance(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
) -> float:
    """
    Great-circle distance between two points in meters.

    Args:
        lat1: Latitude of the first point (degrees)
        lng1: Longitude of the first point (degrees)
        lat2: Latitude of the second point (degrees)
        lng2: Longitude of the second point (degrees)

    Returns:
        Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Clamp against float drift for antipodal/identical points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def bounding_box(
    latitude: float,
    longitude: float,
    radius_meters: float,
) -> Tuple[float, float, float, float]:
    """
    Latitude/longitude box that contains the circle around a point.

    Used as a cheap index-friendly prefilter before exact distance checks.
    Near the poles the longitude span covers the whole globe.

    Returns:
        (min_lat, max_lat, min_lng, max_lng)
    """
    lat_delta = radius_meters / METERS_PER_DEGREE
    cos_lat = math.cos(math.radians(latitude))

    if cos_lat < 1e-6:
        lng_delta = 180.0
    else:
        lng_delta = min(180.0, lat_delta / cos_lat)

    return (
        max(-90.0, latitude - lat_delta),
        min(90.0, latitude + lat_delta),
        longitude - lng_delta,
        longitude + lng_delta,
    )
