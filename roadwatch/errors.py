"""
roadwatch/errors.py
Exception taxonomy. Degraded successes are NOT exceptions; see
StoreResult.origin. Only terminal, caller-visible conditions live here.
"""


class RoadwatchError(Exception):
    """Base for every error raised by roadwatch."""


class PreconditionError(RoadwatchError, ValueError):
    """
    Missing input detected before any I/O: no location fix, malformed id.
    Nothing has been executed when this is raised.
    """


class PrivilegeRequiredError(PreconditionError):
    """Delete / delete-all attempted by a caller without privilege."""


class RemoteStoreError(RoadwatchError):
    """Remote document store failure with the provider's code and message."""

    def __init__(self, code: str, message: str):
        self.code    = str(code or 'unknown')
        self.message = str(message or '')
        super().__init__(f"{self.code}: {self.message}")


class GeocodingError(RoadwatchError):
    """Raised by geocoding adapters. Always caught by AddressResolver."""
