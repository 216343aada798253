"""Fixed discovery targets."""

from courts.places.terms import SUPPORTED_SPORTS

MAJOR_CITY_RADIUS_METERS = 15000

# (name, latitude, longitude)
MAJOR_CITIES = [
    ("New York", 40.7128, -74.0060),
    ("Los Angeles", 34.0522, -118.2437),
    ("Chicago", 41.8781, -87.6298),
    ("Houston", 29.7604, -95.3698),
    ("Phoenix", 33.4484, -112.0740),
    ("Philadelphia", 39.9526, -75.1652),
    ("San Antonio", 29.4241, -98.4936),
    ("San Diego", 32.7157, -117.1611),
    ("Dallas", 32.7767, -96.7970),
    ("Austin", 30.2672, -97.7431),
    ("San Jose", 37.3382, -121.8863),
    ("Jacksonville", 30.3322, -81.6557),
    ("San Francisco", 37.7749, -122.4194),
    ("Indianapolis", 39.7684, -86.1581),
    ("Columbus", 39.9612, -82.9988),
    ("Fort Worth", 32.7555, -97.3308),
    ("Charlotte", 35.2271, -80.8431),
    ("Seattle", 47.6062, -122.3321),
    ("Denver", 39.7392, -104.9903),
    ("Washington DC", 38.9072, -77.0369),
    ("Toronto", 43.6532, -79.3832),
    ("London", 51.5074, -0.1278),
    ("Paris", 48.8566, 2.3522),
    ("Tokyo", 35.6762, 139.6503),
    ("Sydney", -33.8688, 151.2093),
]

__all__ = ["MAJOR_CITIES", "MAJOR_CITY_RADIUS_METERS", "SUPPORTED_SPORTS"]
