"""
roadwatch/builder.py
Assembles a HazardRecord draft (no id yet) from a dictated description
and a location fix.

Order: resolve address (network) → classify → extract cause → stamp time.
Never fails once the location precondition holds: the resolver degrades to
numeric coordinates and classification is total.
"""

import logging
import math
import time
from typing import Callable, Optional, Sequence

from roadwatch.detectors.danger_classifier import DangerClassifier, classifier_for
from roadwatch.errors import PreconditionError
from roadwatch.geocoding.resolver import AddressResolver
from roadwatch.models.record import HazardRecord

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_coords(coords: Optional[Sequence[float]]) -> tuple:
    """(lat, lon) as floats, or PreconditionError. Both values or neither."""
    if coords is None:
        raise PreconditionError("No location fix available.")
    try:
        lat, lon = (float(c) for c in coords)
    except (TypeError, ValueError):
        raise PreconditionError(f"Malformed coordinates: {coords!r}") from None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise PreconditionError(f"Malformed coordinates: {coords!r}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise PreconditionError(f"Coordinates out of range: {lat}, {lon}")
    return lat, lon


def build_record(
    description: str,
    coords:      Optional[Sequence[float]],
    resolver:    AddressResolver,
    classifier:  Optional[DangerClassifier] = None,
    clock:       Callable[[], int]          = now_ms,
) -> HazardRecord:
    lat, lon   = validate_coords(coords)
    classifier = classifier or classifier_for()
    text       = (description or '').strip() or classifier.lexicon.placeholder

    address = resolver.resolve(lat, lon)
    result  = classifier.classify(text)
    reason  = classifier.extract_reason(text)

    record = HazardRecord(
        text       = text,
        coords     = (lat, lon),
        danger     = result.tier,
        address    = address,
        reason     = reason,
        created_at = int(clock()),
    )
    logger.info(
        f"Hazard built: danger={record.danger} score={result.score} "
        f"reason={record.reason} address={record.address!r}"
    )
    return record
