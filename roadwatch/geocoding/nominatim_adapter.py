"""
roadwatch/geocoding/nominatim_adapter.py
OpenStreetMap Nominatim reverse-geocoding adapter.

Usage policy: https://operations.osmfoundation.org/policies/nominatim/
  - an identifying User-Agent is mandatory
  - at most 1 request/second on the public instance
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict

from roadwatch.errors import GeocodingError
from roadwatch.geocoding.base import GeocoderAdapter

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = 'https://nominatim.openstreetmap.org/reverse'


class NominatimAdapter(GeocoderAdapter):

    def __init__(
        self,
        url:         str = NOMINATIM_REVERSE_URL,
        user_agent:  str = 'SmartCityAI/1.0',
        timeout_sec: int = 10,
    ):
        self.url         = url
        self.user_agent  = user_agent
        self.timeout_sec = timeout_sec

    def reverse(self, lat: float, lon: float) -> Dict[str, Any]:
        query = urllib.parse.urlencode({'format': 'json', 'lat': lat, 'lon': lon})
        req = urllib.request.Request(
            f"{self.url}?{query}",
            headers = {'User-Agent': self.user_agent, 'Accept': 'application/json'},
            method  = 'GET',
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                status = getattr(resp, 'status', 200)
                raw    = resp.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            raise GeocodingError(f"Nominatim returned HTTP {e.code}") from e
        except urllib.error.URLError as e:
            raise GeocodingError(f"Nominatim not reachable: {e.reason}") from e
        except OSError as e:
            raise GeocodingError(f"Nominatim request failed: {e}") from e

        if not 200 <= status < 300:
            raise GeocodingError(f"Nominatim returned HTTP {status}")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise GeocodingError(f"Nominatim returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise GeocodingError("Nominatim payload is not an object")
        return data
