"""
roadwatch/geocoding/resolver.py
Coordinates → one line of address text.

resolve() never raises. Every failure (transport, HTTP status, malformed
payload, no adapter configured) degrades to the numeric "lat, lon" form
with five decimals.
"""

import logging
from typing import Any, Dict, Optional

from roadwatch.geocoding.base import GeocoderAdapter

logger = logging.getLogger(__name__)

COORD_PRECISION = 5

# Nominatim address keys, most specific first
ROAD_KEYS = ('road', 'pedestrian', 'footway')
CITY_KEYS = ('city', 'town', 'village')


def format_coords(lat: float, lon: float) -> str:
    return f"{float(lat):.{COORD_PRECISION}f}, {float(lon):.{COORD_PRECISION}f}"


class AddressResolver:

    def __init__(self, adapter: Optional[GeocoderAdapter] = None):
        self.adapter = adapter

    def resolve(self, lat: float, lon: float) -> str:
        fallback = format_coords(lat, lon)
        if self.adapter is None:
            return fallback

        try:
            payload = self.adapter.reverse(lat, lon)
            return format_address(payload) or fallback
        except Exception as e:
            logger.warning(f"Reverse geocode failed, using coordinates: {e}")
            return fallback


def format_address(payload: Dict[str, Any]) -> Optional[str]:
    """
    Preferred form: "<road> <house>, <city>".
    Without a road, the service's display_name. None when neither exists.
    """
    if not isinstance(payload, dict):
        return None

    address = payload.get('address')
    if not isinstance(address, dict):
        address = {}

    road = _first(address, ROAD_KEYS)
    if road:
        house = address.get('house_number')
        city  = _first(address, CITY_KEYS)
        text  = road
        if house:
            text += f" {house}"
        if city:
            text += f", {city}"
        return text

    display = payload.get('display_name')
    if isinstance(display, str) and display.strip():
        return display.strip()
    return None


def _first(mapping: Dict[str, Any], keys) -> str:
    for key in keys:
        value = mapping.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ''
