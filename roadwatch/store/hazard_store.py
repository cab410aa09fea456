"""
roadwatch/store/hazard_store.py
Durable hazard persistence: remote store first, local cache as fallback.

  list_hazards  remote read → on failure, local cache. Normalized, newest first.
  create        remote write → on failure, local-only id ('local-…').
                The cache mirrors every record either way.
  delete_one    privileged. Local ids touch the cache only; remote ids are
                deleted remotely, then mirrored into the cache.
  delete_all    privileged. Remote documents deleted one at a time, then
                the cache slot is cleared.

NO RETRIES: a remote failure degrades once (reads, creates) or is raised
once as RemoteStoreError (deletes). Local-only records are never pushed
to the remote store later.

CACHE SLOT FORMAT: JSON array of wire documents, each with its "id".
"""

import json
import logging
import math
import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from roadwatch.builder import now_ms
from roadwatch.detectors.danger_classifier import classifier_for
from roadwatch.errors import PreconditionError, PrivilegeRequiredError, RemoteStoreError
from roadwatch.geocoding.resolver import format_coords
from roadwatch.lexicons import DEFAULT_LANGUAGE
from roadwatch.models.record import (
    DANGER_TIERS, DeleteResult, HazardRecord, Origin, PrivilegeContext, StoreResult,
)
from roadwatch.store.local_cache import LocalCache
from roadwatch.store.remote_base import RemoteStoreAdapter

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX   = 'local-'
DEFAULT_CACHE_KEY = 'hazards'
NOT_CONFIGURED    = 'remote store not configured'


def is_local_id(hazard_id: Any) -> bool:
    return str(hazard_id).startswith(LOCAL_ID_PREFIX)


# ── WIRE SHAPE ───────────────────────────────────────────────

def record_to_document(record: HazardRecord) -> Dict[str, Any]:
    """Remote document body — everything except the id."""
    return {
        'text':      record.text,
        'coords':    list(record.coords) if record.coords else None,
        'danger':    record.danger,
        'address':   record.address,
        'reason':    record.reason,
        'createdAt': record.created_at,
    }


def record_to_dict(record: HazardRecord) -> Dict[str, Any]:
    return {'id': record.id, **record_to_document(record)}


def normalize_document(
    doc_id:   Any,
    raw:      Dict[str, Any],
    language: str = DEFAULT_LANGUAGE,
) -> HazardRecord:
    """
    Any stored shape → canonical HazardRecord.
    Backfills: danger (re-classified), address (numeric coords),
    legacy coordsLat/coordsLng, provider timestamps, missing createdAt → 0.
    """
    raw        = raw if isinstance(raw, dict) else {}
    classifier = classifier_for(language)

    text   = raw.get('text')
    text   = text if isinstance(text, str) else ''
    coords = _coerce_coords(raw)

    danger = raw.get('danger')
    if danger not in DANGER_TIERS:
        danger = classifier.classify(text).tier

    address = raw.get('address')
    if not isinstance(address, str) or not address.strip():
        address = (
            format_coords(*coords) if coords
            else classifier.lexicon.messages['unknown_location']
        )

    reason = raw.get('reason')
    reason = reason if isinstance(reason, str) and reason else None

    return HazardRecord(
        id         = str(doc_id if doc_id is not None else raw.get('id', '')),
        text       = text,
        coords     = coords,
        danger     = danger,
        address    = address,
        reason     = reason,
        created_at = _coerce_ms(raw.get('createdAt')),
    )


def _coerce_coords(raw: Dict[str, Any]) -> Optional[tuple]:
    coords = raw.get('coords')
    if isinstance(coords, (list, tuple)) and len(coords) == 2:
        pair = coords
    elif raw.get('coordsLat') is not None and raw.get('coordsLng') is not None:
        pair = (raw['coordsLat'], raw['coordsLng'])
    else:
        return None
    try:
        lat, lon = float(pair[0]), float(pair[1])
    except (TypeError, ValueError):
        return None
    return lat, lon


def _coerce_ms(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        try:
            return int(datetime.fromisoformat(text.replace('Z', '+00:00')).timestamp() * 1000)
        except ValueError:
            return 0
    return 0


def sort_newest_first(records: List[HazardRecord]) -> List[HazardRecord]:
    return sorted(records, key=lambda r: r.created_at or 0, reverse=True)


# ── STORE ────────────────────────────────────────────────────

class HazardStore:

    def __init__(
        self,
        remote:    Optional[RemoteStoreAdapter],
        cache:     LocalCache,
        cache_key: str               = DEFAULT_CACHE_KEY,
        language:  str               = DEFAULT_LANGUAGE,
        clock:     Callable[[], int] = now_ms,
    ):
        self.remote    = remote
        self.cache     = cache
        self.cache_key = cache_key
        self.language  = language
        self.clock     = clock

    # ── CACHE SLOT ───────────────────────────────────────────
    def _read_cache(self) -> List[HazardRecord]:
        raw = self.cache.get(self.cache_key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Local cache slot '{self.cache_key}' is corrupt, ignoring: {e}")
            return []
        if not isinstance(items, list):
            logger.warning(f"Local cache slot '{self.cache_key}' is not a list, ignoring.")
            return []
        return [
            normalize_document(item.get('id'), item, self.language)
            for item in items if isinstance(item, dict)
        ]

    def _write_cache(self, records: List[HazardRecord]) -> None:
        payload = json.dumps([record_to_dict(r) for r in records], ensure_ascii=False)
        self.cache.set(self.cache_key, payload)

    def _prepend_to_cache(self, record: HazardRecord) -> None:
        cached = [r for r in self._read_cache() if r.id != record.id]
        self._write_cache([record] + cached)

    def _drop_from_cache(self, hazard_id: str) -> bool:
        cached    = self._read_cache()
        remaining = [r for r in cached if r.id != hazard_id]
        self._write_cache(remaining)
        return len(remaining) != len(cached)

    # ── LIST ─────────────────────────────────────────────────
    def list_hazards(self) -> StoreResult:
        """StoreResult[List[HazardRecord]], newest first."""
        error = NOT_CONFIGURED
        if self.remote is not None:
            try:
                docs = self.remote.list_documents()
                records = [normalize_document(i, d, self.language) for i, d in docs]
            except Exception as e:
                error = str(e) or type(e).__name__
                logger.warning(f"Remote read failed, reading local cache: {error}")
            else:
                self._refresh_cache(records)
                return StoreResult(value=sort_newest_first(records), origin=Origin.REMOTE)

        records = self._read_cache()
        return StoreResult(
            value  = sort_newest_first(records),
            origin = Origin.LOCAL_FALLBACK,
            error  = error,
        )

    def _refresh_cache(self, remote_records: List[HazardRecord]) -> None:
        """Mirror the remote set, keeping local-only records alongside it."""
        try:
            local_only = [r for r in self._read_cache() if is_local_id(r.id)]
            self._write_cache(sort_newest_first(remote_records + local_only))
        except sqlite3.Error as e:
            logger.warning(f"Local cache refresh failed: {e}")

    # ── CREATE ───────────────────────────────────────────────
    def create(self, draft: HazardRecord) -> StoreResult:
        """StoreResult[HazardRecord] with the final id assigned."""
        error = NOT_CONFIGURED
        if self.remote is not None:
            try:
                doc_id = self.remote.create(record_to_document(draft))
            except Exception as e:
                error = str(e) or type(e).__name__
                logger.warning(f"Remote write failed, saving locally only: {error}")
            else:
                record = replace(draft, id=str(doc_id))
                try:
                    self._prepend_to_cache(record)
                except sqlite3.Error as e:
                    logger.warning(f"Saved remotely but local mirror failed: {e}")
                logger.info(f"Hazard stored remotely: id={record.id}")
                return StoreResult(value=record, origin=Origin.REMOTE)

        record = replace(draft, id=self._new_local_id())
        self._prepend_to_cache(record)
        logger.info(f"Hazard stored locally only: id={record.id}")
        return StoreResult(value=record, origin=Origin.LOCAL_FALLBACK, error=error)

    def _new_local_id(self) -> str:
        taken = {r.id for r in self._read_cache()}
        stamp = int(self.clock())
        while f"{LOCAL_ID_PREFIX}{stamp}" in taken:
            stamp += 1
        return f"{LOCAL_ID_PREFIX}{stamp}"

    # ── DELETE ───────────────────────────────────────────────
    def delete_one(self, hazard_id: Any, context: PrivilegeContext) -> DeleteResult:
        _require_privilege(context, 'delete a hazard')
        if hazard_id is None or not str(hazard_id).strip():
            raise PreconditionError(f"Malformed hazard id: {hazard_id!r}")
        hazard_id = str(hazard_id).strip()

        if is_local_id(hazard_id):
            found = self._drop_from_cache(hazard_id)
            logger.info(f"Local hazard delete: id={hazard_id} found={found}")
            return DeleteResult(
                deleted = 1 if found else 0,
                origin  = Origin.LOCAL_FALLBACK,
                ids     = [hazard_id] if found else [],
            )

        self._remote_delete(hazard_id)
        self._drop_from_cache(hazard_id)
        logger.info(f"Hazard deleted: id={hazard_id} by={context.identity}")
        return DeleteResult(deleted=1, origin=Origin.REMOTE, ids=[hazard_id])

    def delete_all(self, context: PrivilegeContext) -> DeleteResult:
        _require_privilege(context, 'delete all hazards')
        remote = self._require_remote()

        try:
            docs = remote.list_documents()
        except RemoteStoreError as e:
            logger.error(f"Delete-all failed while listing: {e}")
            raise

        if not docs:
            self.cache.remove(self.cache_key)
            logger.info("Delete-all: remote collection already empty.")
            return DeleteResult(deleted=0, origin=Origin.REMOTE)

        deleted: List[str] = []
        for doc_id, _ in docs:
            logger.debug(f"Delete-all: deleting {doc_id}")
            self._remote_delete(doc_id)
            deleted.append(doc_id)

        self.cache.remove(self.cache_key)
        logger.info(f"Delete-all: {len(deleted)} hazard(s) deleted by={context.identity}")
        return DeleteResult(deleted=len(deleted), origin=Origin.REMOTE, ids=deleted)

    # ── INTERNAL ─────────────────────────────────────────────
    def _require_remote(self) -> RemoteStoreAdapter:
        if self.remote is None:
            raise RemoteStoreError('unavailable', NOT_CONFIGURED)
        return self.remote

    def _remote_delete(self, hazard_id: str) -> None:
        remote = self._require_remote()
        try:
            remote.delete(hazard_id)
        except RemoteStoreError as e:
            logger.error(f"Remote delete failed for {hazard_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Remote delete failed for {hazard_id}: {e}")
            raise RemoteStoreError('unknown', str(e)) from e


def _require_privilege(context: Optional[PrivilegeContext], action: str) -> None:
    if context is None or not context.privileged:
        raise PrivilegeRequiredError(f"Privileged caller required to {action}.")
