"""
tests/test_hazard_store.py
Remote-first persistence with local fallback, normalization on read,
privileged deletion.
"""

import json

import pytest

from conftest import ADMIN, VISITOR, make_draft
from roadwatch.errors import PreconditionError, PrivilegeRequiredError, RemoteStoreError
from roadwatch.models.record import Origin
from roadwatch.store.hazard_store import (
    DEFAULT_CACHE_KEY,
    HazardStore,
    is_local_id,
    normalize_document,
    record_to_document,
)


def _cached(cache):
    raw = cache.get(DEFAULT_CACHE_KEY)
    return json.loads(raw) if raw else []


# ── NORMALIZATION ────────────────────────────────────────────

class TestNormalizeDocument:
    def test_complete_document_passes_through(self):
        record = normalize_document('abc', {
            'text': 'пожар', 'coords': [43.2, 76.9], 'danger': 'high',
            'address': 'Абая 1', 'reason': 'пожар', 'createdAt': 5,
        })
        assert record.id == 'abc'
        assert record.coords == (43.2, 76.9)
        assert record.danger == 'high'
        assert record.created_at == 5

    def test_missing_danger_is_reclassified(self):
        record = normalize_document('x', {'text': 'дтп на перекрестке', 'createdAt': 1})
        assert record.danger == 'high'

    def test_invalid_danger_is_reclassified(self):
        record = normalize_document('x', {'text': 'яма', 'danger': 'extreme'})
        assert record.danger == 'low'

    def test_missing_address_from_coords(self):
        record = normalize_document('x', {'text': 'яма', 'coords': [43.238949, 76.889709]})
        assert record.address == '43.23895, 76.88971'

    def test_missing_address_and_coords(self):
        record = normalize_document('x', {'text': 'яма'})
        assert record.address == 'неизвестное место'
        assert record.coords is None

    def test_legacy_coordinate_fields(self):
        record = normalize_document('x', {'text': 'яма', 'coordsLat': 1.5, 'coordsLng': 2.5})
        assert record.coords == (1.5, 2.5)

    def test_missing_created_at_is_zero(self):
        assert normalize_document('x', {'text': 'яма'}).created_at == 0

    def test_iso_timestamp_created_at(self):
        record = normalize_document('x', {'createdAt': '2023-11-14T22:13:20Z'})
        assert record.created_at == 1_700_000_000_000

    def test_unknown_fields_ignored(self):
        record = normalize_document('x', {'text': 'яма', 'author': 'me', 'likes': 3})
        assert record.text == 'яма'

    def test_document_shape(self):
        doc = record_to_document(make_draft())
        assert set(doc) == {'text', 'coords', 'danger', 'address', 'reason', 'createdAt'}
        assert doc['coords'] == [43.238949, 76.889709]


# ── LIST ─────────────────────────────────────────────────────

class TestList:
    def test_remote_success_newest_first(self, store, remote):
        remote.docs = {
            'a': {'text': 'старое', 'createdAt': 100},
            'b': {'text': 'новое',  'createdAt': 300},
            'c': {'text': 'среднее', 'createdAt': 200},
        }
        result = store.list_hazards()
        assert result.origin is Origin.REMOTE
        assert not result.degraded
        assert [r.id for r in result.value] == ['b', 'c', 'a']

    def test_undated_documents_sort_last(self, store, remote):
        remote.docs = {'old': {'text': 'x'}, 'new': {'text': 'y', 'createdAt': 1}}
        assert [r.id for r in store.list_hazards().value] == ['new', 'old']

    def test_remote_failure_reads_cache(self, store, remote):
        remote.fail_create = True
        created = store.create(make_draft(text='локальная')).value
        remote.fail_list = True

        result = store.list_hazards()
        assert result.degraded
        assert result.origin is Origin.LOCAL_FALLBACK
        assert 'network down' in result.error
        assert result.value == [created]

    @pytest.mark.parametrize('bad', [float('nan'), float('inf'), float('-inf')])
    def test_non_finite_created_at_does_not_break_remote_read(self, store, remote, bad):
        remote.docs = {'a': {'text': 'яма', 'createdAt': bad}, 'b': {'text': 'лужа', 'createdAt': 5}}
        result = store.list_hazards()
        assert result.origin is Origin.REMOTE
        assert [(r.id, r.created_at) for r in result.value] == [('b', 5), ('a', 0)]

    def test_empty_cache_on_failure(self, store, remote):
        remote.fail_list = True
        result = store.list_hazards()
        assert result.degraded
        assert result.value == []

    def test_corrupt_cache_reads_as_empty(self, store, remote, cache):
        remote.fail_list = True
        cache.set(DEFAULT_CACHE_KEY, '{not json')
        assert store.list_hazards().value == []

    def test_remote_read_refreshes_cache_keeping_local_records(self, store, remote, cache):
        remote.fail_create = True
        local = store.create(make_draft(created_at=1)).value
        remote.docs = {'r1': {'text': 'remote', 'createdAt': 2}}

        store.list_hazards()
        assert {item['id'] for item in _cached(cache)} == {'r1', local.id}

    def test_no_remote_configured(self, cache):
        store = HazardStore(remote=None, cache=cache)
        result = store.list_hazards()
        assert result.degraded
        assert 'not configured' in result.error


# ── CREATE ───────────────────────────────────────────────────

class TestCreate:
    def test_remote_id_assigned_and_mirrored(self, store, remote, cache):
        result = store.create(make_draft())
        assert result.origin is Origin.REMOTE
        assert result.value.id == 'doc-1'
        assert remote.docs['doc-1']['createdAt'] == 1_700_000_000_000
        assert _cached(cache)[0]['id'] == 'doc-1'

    def test_remote_failure_creates_local_record(self, store, remote, cache):
        remote.fail_create = True
        result = store.create(make_draft())
        assert result.degraded
        assert result.value.id == 'local-1700000000000'
        assert is_local_id(result.value.id)
        assert _cached(cache)[0]['id'] == result.value.id

    def test_local_records_are_prepended(self, store, remote, cache):
        remote.fail_create = True
        first  = store.create(make_draft(text='первый')).value
        second = store.create(make_draft(text='второй')).value
        assert [item['id'] for item in _cached(cache)] == [second.id, first.id]

    def test_local_ids_are_unique_within_one_millisecond(self, store, remote):
        remote.fail_create = True
        ids = {store.create(make_draft()).value.id for _ in range(3)}
        assert len(ids) == 3

    def test_draft_is_not_mutated(self, store):
        draft = make_draft()
        store.create(draft)
        assert draft.id == ''


# ── DELETE ONE ───────────────────────────────────────────────

class TestDeleteOne:
    def test_requires_privilege(self, store, remote):
        store.create(make_draft())
        with pytest.raises(PrivilegeRequiredError):
            store.delete_one('doc-1', VISITOR)
        with pytest.raises(PrivilegeRequiredError):
            store.delete_one('doc-1', None)
        assert 'doc-1' in remote.docs
        assert remote.delete_calls == []

    @pytest.mark.parametrize('bad_id', [None, '', '   '])
    def test_malformed_id(self, store, bad_id):
        with pytest.raises(PreconditionError):
            store.delete_one(bad_id, ADMIN)

    def test_remote_delete_then_cache(self, store, remote, cache):
        store.create(make_draft())
        result = store.delete_one('doc-1', ADMIN)
        assert result.deleted == 1
        assert result.origin is Origin.REMOTE
        assert 'doc-1' not in remote.docs
        assert _cached(cache) == []

    def test_remote_failure_is_raised_and_cache_untouched(self, store, remote, cache):
        store.create(make_draft())
        remote.fail_delete = True
        with pytest.raises(RemoteStoreError) as excinfo:
            store.delete_one('doc-1', ADMIN)
        assert excinfo.value.code == 'PERMISSION_DENIED'
        assert _cached(cache)[0]['id'] == 'doc-1'

    def test_local_id_never_reaches_remote(self, store, remote, cache):
        remote.fail_create = True
        local = store.create(make_draft()).value
        result = store.delete_one(local.id, ADMIN)
        assert result.deleted == 1
        assert result.origin is Origin.LOCAL_FALLBACK
        assert remote.delete_calls == []
        assert _cached(cache) == []

    def test_unknown_local_id(self, store):
        assert store.delete_one('local-1', ADMIN).deleted == 0


# ── DELETE ALL ───────────────────────────────────────────────

class TestDeleteAll:
    def test_requires_privilege(self, store, remote):
        store.create(make_draft())
        with pytest.raises(PrivilegeRequiredError):
            store.delete_all(VISITOR)
        assert len(remote.docs) == 1

    def test_deletes_everything_and_clears_cache(self, store, remote, cache):
        for _ in range(3):
            store.create(make_draft())
        result = store.delete_all(ADMIN)
        assert result.deleted == 3
        assert remote.docs == {}
        assert remote.delete_calls == ['doc-1', 'doc-2', 'doc-3']
        assert cache.get(DEFAULT_CACHE_KEY) is None

    def test_empty_collection(self, store, remote, cache):
        remote.fail_create = True
        store.create(make_draft())
        result = store.delete_all(ADMIN)
        assert result.deleted == 0
        assert cache.get(DEFAULT_CACHE_KEY) is None

    def test_partial_failure_keeps_cache(self, store, remote, cache):
        for _ in range(3):
            store.create(make_draft())
        remote.fail_delete_after = 1
        with pytest.raises(RemoteStoreError):
            store.delete_all(ADMIN)
        assert list(remote.docs) == ['doc-2', 'doc-3']
        assert len(_cached(cache)) == 3

    def test_listing_failure_is_raised(self, store, remote):
        remote.fail_list = True
        with pytest.raises(RemoteStoreError):
            store.delete_all(ADMIN)

    def test_no_remote_configured(self, cache):
        store = HazardStore(remote=None, cache=cache)
        with pytest.raises(RemoteStoreError):
            store.delete_all(ADMIN)


# ── LOCAL CACHE FILE ─────────────────────────────────────────

class TestLocalCacheFile:
    def test_slot_survives_database_file_removal(self, cache):
        cache.set(DEFAULT_CACHE_KEY, '[]')
        cache.db_path.unlink()
        cache.set(DEFAULT_CACHE_KEY, '["x"]')
        assert cache.get(DEFAULT_CACHE_KEY) == '["x"]'

    def test_missing_file_reads_as_empty(self, cache):
        assert cache.get(DEFAULT_CACHE_KEY) is None
        cache.remove(DEFAULT_CACHE_KEY)
        assert not cache.db_path.exists()
