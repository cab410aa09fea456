"""
roadwatch/geocoding/base.py
Abstract base class for reverse-geocoding adapters.
To add a new backend: subclass GeocoderAdapter and implement reverse().
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class GeocoderAdapter(ABC):
    """
    All reverse-geocoding backends implement this interface.
    AddressResolver calls reverse() and turns the payload into one line
    of address text. The resolver never knows which backend is running.
    """

    @abstractmethod
    def reverse(self, lat: float, lon: float) -> Dict[str, Any]:
        """
        Look up a coordinate pair.
        Returns the service payload in Nominatim shape:
            {"display_name": str, "address": {"road": ..., "house_number": ...,
             "city": ..., ...}}
        Raises GeocodingError on transport failure or non-success response.
        """
        ...
