"""
LANA Utility Functions
Common utility functions for distance calculations and level conversions.
"""

from math import atan2, cos, isfinite, log10, pi, sin, sqrt
from typing import Any

from .config import Constants


def to_radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * pi / 180


def _central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Central angle between two points (radians), Haversine formula."""
    phi1 = to_radians(lat1)
    phi2 = to_radians(lat2)
    dphi = to_radians(lat2 - lat1)
    dlambda = to_radians(lon2 - lon1)

    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    return 2 * atan2(sqrt(a), sqrt(1 - a))


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great circle distance between two points using Haversine formula.

    The Haversine formula calculates the shortest distance over the earth's
    surface, giving an "as-the-crow-flies" distance between two points.
    NaN inputs propagate as NaN.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance in kilometers

    Example:
        >>> haversine_distance(47.6062, -122.3321, 47.4502, -122.3088)
        17.4
    """
    return Constants.EARTH_RADIUS_KM * _central_angle(lat1, lon1, lat2, lon2)


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great circle distance in statute miles.

    Used by the point-of-interest radius pre-filter, which is configured in
    miles.

    Args:
        lat1, lon1: First point (degrees)
        lat2, lon2: Second point (degrees)

    Returns:
        Distance in miles
    """
    return Constants.EARTH_RADIUS_MILES * _central_angle(lat1, lon1, lat2, lon2)


def is_finite_number(value: Any) -> bool:
    """True for real numbers that are neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isfinite(value)


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        True if coordinates are valid

    Example:
        >>> validate_coordinates(47.6062, -122.3321)
        True
        >>> validate_coordinates(100, 200)
        False
    """
    if not (is_finite_number(lat) and is_finite_number(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def decibels_to_linear(db_value: float) -> float:
    """Convert a level in dB to linear sound power."""
    return 10 ** (db_value / 10)


def linear_to_decibels(linear_value: float) -> float:
    """Convert linear sound power to a level in dB."""
    return 10 * log10(linear_value)
