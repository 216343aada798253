"""
Utility helpers for the courts application.

- geo: great-circle distance and bounding boxes for proximity queries
"""

from .geo import (
    EARTH_RADIUS_METERS,
    bounding_box,
    haversine_distance,
)

__all__ = [
    "EARTH_RADIUS_METERS",
    "bounding_box",
    "haversine_distance",
]
