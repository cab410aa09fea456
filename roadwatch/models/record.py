"""
roadwatch/models/record.py
Shared dataclass schema. The classifier, resolver, interpreter, builder
and store all exchange these types. Data only, no logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, Tuple, TypeVar, Union

T = TypeVar('T')

DANGER_LOW    = 'low'
DANGER_MEDIUM = 'medium'
DANGER_HIGH   = 'high'
DANGER_TIERS  = (DANGER_LOW, DANGER_MEDIUM, DANGER_HIGH)


@dataclass(frozen=True)
class HazardRecord:
    """One persisted road hazard. Never mutated after creation."""
    text:        str
    coords:      Optional[Tuple[float, float]]   # (lat, lon), both or neither
    danger:      str                             # low / medium / high
    address:     str
    reason:      Optional[str]
    created_at:  int                             # epoch ms, sole sort key
    id:          str = ''                        # assigned by HazardStore


@dataclass(frozen=True)
class Evidence:
    stem:    str
    weight:  int
    method:  str        # regex / substring / booster


@dataclass(frozen=True)
class ClassificationResult:
    """Transient — used for scoring and debugging, never stored."""
    tier:      str
    score:     int
    evidence:  List[Evidence] = field(default_factory=list)


# ── VOICE INTENTS ────────────────────────────────────────────

@dataclass(frozen=True)
class RecordHazard:
    description:  str
    transcript:   str


@dataclass(frozen=True)
class RequestDelete:
    transcript:  str


@dataclass(frozen=True)
class Unrecognized:
    transcript:  str


Intent = Union[RecordHazard, RequestDelete, Unrecognized]


# ── STORE RESULTS ────────────────────────────────────────────

class Origin(str, Enum):
    REMOTE         = 'remote'
    LOCAL_FALLBACK = 'local_fallback'


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """
    Outcome of a store read or write.
    origin=LOCAL_FALLBACK marks a degraded success: the value is usable
    on this client but did not come from (or reach) the remote store.
    """
    value:   T
    origin:  Origin
    error:   Optional[str] = None    # remote failure text when degraded

    @property
    def degraded(self) -> bool:
        return self.origin is Origin.LOCAL_FALLBACK


@dataclass(frozen=True)
class DeleteResult:
    deleted:  int
    origin:   Origin
    ids:      List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PrivilegeContext:
    """
    Authorization decided upstream. The pipeline trusts the flag as given.
    identity is carried for logging only.
    """
    privileged:  bool          = False
    identity:    Optional[str] = None
