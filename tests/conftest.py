"""
tests/conftest.py
Shared fakes. No network, no real Firestore. Every remote call is
recorded on FakeRemote so tests can assert on ordering and counts.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

import pytest

from roadwatch.errors import RemoteStoreError
from roadwatch.models.record import HazardRecord, PrivilegeContext
from roadwatch.store.hazard_store import HazardStore
from roadwatch.store.local_cache import SqliteLocalCache
from roadwatch.store.remote_base import RemoteStoreAdapter

ADMIN   = PrivilegeContext(privileged=True,  identity='admin@example.com')
VISITOR = PrivilegeContext(privileged=False, identity='someone@example.com')


class FakeRemote(RemoteStoreAdapter):
    """In-memory document store with switchable failures."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.fail_create = False
        self.fail_list   = False
        self.fail_delete = False
        self.fail_delete_after: Optional[int] = None
        self.delete_calls: List[str] = []
        self._next = 0

    def create(self, document: Dict[str, Any]) -> str:
        if self.fail_create:
            raise RemoteStoreError('unavailable', 'network down')
        self._next += 1
        doc_id = f"doc-{self._next}"
        self.docs[doc_id] = dict(document)
        return doc_id

    def list_documents(self) -> List[Tuple[str, Dict[str, Any]]]:
        if self.fail_list:
            raise RemoteStoreError('unavailable', 'network down')
        return [(k, dict(v)) for k, v in self.docs.items()]

    def delete(self, doc_id: str) -> None:
        self.delete_calls.append(doc_id)
        if self.fail_delete or (
            self.fail_delete_after is not None
            and len(self.delete_calls) > self.fail_delete_after
        ):
            raise RemoteStoreError('PERMISSION_DENIED', 'Missing or insufficient permissions.')
        self.docs.pop(doc_id, None)


def make_draft(
    text:       str   = 'яма на дороге',
    created_at: int   = 1_700_000_000_000,
    danger:     str   = 'low',
    coords:     tuple = (43.238949, 76.889709),
) -> HazardRecord:
    return HazardRecord(
        text       = text,
        coords     = coords,
        danger     = danger,
        address    = 'улица Абая 10, Алматы',
        reason     = None,
        created_at = created_at,
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith('ROADWATCH_'):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def cache(tmp_path) -> SqliteLocalCache:
    return SqliteLocalCache(tmp_path / 'cache.db')


@pytest.fixture
def store(remote, cache) -> HazardStore:
    return HazardStore(remote=remote, cache=cache, clock=lambda: 1_700_000_000_000)
