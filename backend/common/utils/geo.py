"""
Geographic utility functions.

This module provides core geospatial calculations used throughout the application.
"""

from math import radians, cos, sin, asin, sqrt
from typing import NamedTuple

# Mean Earth radius used by the haversine formula
EARTH_RADIUS_KM = 6371.0


class Coordinate(NamedTuple):
    """A (latitude, longitude) pair in degrees."""
    latitude: float
    longitude: float

    @classmethod
    def from_values(cls, latitude, longitude) -> "Coordinate":
        """Build a coordinate from raw values (Decimal, str, float), validating ranges."""
        lat, lon = float(latitude), float(longitude)
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"Latitude out of range: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"Longitude out of range: {lon}")
        return cls(lat, lon)


def calculate_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points in kilometers using Haversine formula.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers (unrounded)
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(min(1.0, sqrt(a)))
    return c * EARTH_RADIUS_KM


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Distance in kilometers between two coordinates."""
    return calculate_distance_km(a.latitude, a.longitude, b.latitude, b.longitude)
