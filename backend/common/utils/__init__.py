"""Common utility functions."""

from .geo import Coordinate, EARTH_RADIUS_KM, calculate_distance_km, distance_between

__all__ = [
    "Coordinate",
    "EARTH_RADIUS_KM",
    "calculate_distance_km",
    "distance_between",
]
