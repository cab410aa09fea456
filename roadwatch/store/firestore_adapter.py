"""
roadwatch/store/firestore_adapter.py
Cloud Firestore backend over the REST v1 API — stdlib HTTP only.

REST reference: https://firebase.google.com/docs/firestore/reference/rest
  create  POST   …/documents/{collection}
  list    GET    …/documents/{collection}?pageSize=N&pageToken=T
  delete  DELETE …/documents/{collection}/{id}

Values are typed on the wire ({"stringValue": …}, {"integerValue": "42"} …);
encode_value / decode_value convert to and from plain Python.

AUTH: api_key identifies the project; id_token (Firebase Auth ID token)
is sent as a Bearer header when security rules require a signed-in user.
The key is never logged.
"""

import json
import logging
import re
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from roadwatch.errors import RemoteStoreError
from roadwatch.store.remote_base import RemoteStoreAdapter

logger = logging.getLogger(__name__)

FIRESTORE_BASE_URL = 'https://firestore.googleapis.com/v1'
PAGE_SIZE          = 300


class FirestoreAdapter(RemoteStoreAdapter):

    def __init__(
        self,
        project_id:  str,
        api_key:     Optional[str] = None,
        collection:  str           = 'hazards',
        database:    str           = '(default)',
        timeout_sec: int           = 15,
        id_token:    Optional[str] = None,
        base_url:    str           = FIRESTORE_BASE_URL,
    ):
        if not project_id:
            raise ValueError("Firestore project_id is required")
        self.project_id  = project_id
        self.api_key     = api_key
        self.collection  = collection
        self.database    = database
        self.timeout_sec = timeout_sec
        self.id_token    = id_token
        self.base_url    = base_url.rstrip('/')

    # ── URLS ─────────────────────────────────────────────────
    @property
    def collection_url(self) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}"
            f"/databases/{self.database}/documents/{self.collection}"
        )

    def _url(self, suffix: str = '', **params) -> str:
        url = self.collection_url + suffix
        if self.api_key:
            params['key'] = self.api_key
        query = {k: v for k, v in params.items() if v is not None}
        return f"{url}?{urllib.parse.urlencode(query)}" if query else url

    # ── OPERATIONS ───────────────────────────────────────────
    def create(self, document: Dict[str, Any]) -> str:
        body = {'fields': {k: encode_value(v) for k, v in document.items()}}
        data = self._request('POST', self._url(), body)
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise RemoteStoreError('invalid-response', 'create returned no document name')
        doc_id = doc_id_from_name(name)
        logger.debug(f"Firestore created {self.collection}/{doc_id}")
        return doc_id

    def list_documents(self) -> List[Tuple[str, Dict[str, Any]]]:
        out: List[Tuple[str, Dict[str, Any]]] = []
        token: Optional[str] = None
        while True:
            data = self._request(
                'GET', self._url(pageSize=PAGE_SIZE, pageToken=token)
            )
            for doc in data.get('documents', []) or []:
                fields = doc.get('fields', {}) or {}
                out.append((
                    doc_id_from_name(doc.get('name', '')),
                    {k: decode_value(v) for k, v in fields.items()},
                ))
            token = data.get('nextPageToken')
            if not token:
                break
        logger.debug(f"Firestore listed {len(out)} document(s)")
        return out

    def delete(self, doc_id: str) -> None:
        if not doc_id:
            raise RemoteStoreError('invalid-argument', 'empty document id')
        suffix = '/' + urllib.parse.quote(str(doc_id), safe='')
        self._request('DELETE', self._url(suffix))
        logger.debug(f"Firestore deleted {self.collection}/{doc_id}")

    # ── TRANSPORT ────────────────────────────────────────────
    def _request(
        self,
        method:  str,
        url:     str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {'Accept': 'application/json'}
        data    = None
        if payload is not None:
            data = json.dumps(payload).encode('utf-8')
            headers['Content-Type'] = 'application/json'
        if self.id_token:
            headers['Authorization'] = f"Bearer {self.id_token}"

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            raise _error_from_http(e) from e
        except urllib.error.URLError as e:
            raise RemoteStoreError('unavailable', f"Firestore not reachable: {e.reason}") from e
        except OSError as e:
            raise RemoteStoreError('unavailable', f"Firestore request failed: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RemoteStoreError('invalid-response', f"Firestore returned invalid JSON: {e}") from e
        return data if isinstance(data, dict) else {}


def _error_from_http(e: urllib.error.HTTPError) -> RemoteStoreError:
    """Firestore errors: {"error": {"code": 403, "message": …, "status": "PERMISSION_DENIED"}}"""
    code, message = str(e.code), str(e.reason or '')
    try:
        body = json.loads(e.read().decode('utf-8') or '{}')
        err  = body.get('error', {}) if isinstance(body, dict) else {}
        code    = err.get('status') or str(err.get('code') or code)
        message = err.get('message') or message
    except (ValueError, OSError, AttributeError):
        pass
    return RemoteStoreError(code, message)


def doc_id_from_name(name: str) -> str:
    """projects/p/databases/(default)/documents/hazards/abc → abc"""
    return urllib.parse.unquote(str(name).rstrip('/').rsplit('/', 1)[-1])


# ── VALUE CODEC ──────────────────────────────────────────────

def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {'nullValue': None}
    if isinstance(value, bool):
        return {'booleanValue': value}
    if isinstance(value, int):
        return {'integerValue': str(value)}
    if isinstance(value, float):
        return {'doubleValue': value}
    if isinstance(value, str):
        return {'stringValue': value}
    if isinstance(value, (list, tuple)):
        return {'arrayValue': {'values': [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {'mapValue': {'fields': {k: encode_value(v) for k, v in value.items()}}}
    raise TypeError(f"Cannot encode {type(value).__name__} for Firestore")


def decode_value(value: Dict[str, Any]) -> Any:
    if not isinstance(value, dict) or not value:
        return None
    kind, raw = next(iter(value.items()))
    if kind == 'nullValue':
        return None
    if kind == 'integerValue':
        return int(raw)
    if kind == 'doubleValue':
        return float(raw)
    if kind in ('stringValue', 'booleanValue', 'referenceValue', 'bytesValue'):
        return raw
    if kind == 'timestampValue':
        return _timestamp_to_ms(raw)
    if kind == 'geoPointValue':
        return [raw.get('latitude'), raw.get('longitude')]
    if kind == 'arrayValue':
        return [decode_value(v) for v in (raw or {}).get('values', [])]
    if kind == 'mapValue':
        return {k: decode_value(v) for k, v in (raw or {}).get('fields', {}).items()}
    logger.debug(f"Unknown Firestore value type: {kind}")
    return raw


def _timestamp_to_ms(raw: str) -> Optional[int]:
    """RFC 3339 'Z' timestamp (nanosecond precision allowed) → epoch ms."""
    try:
        text = str(raw).replace('Z', '+00:00')
        if '.' in text:
            head, rest = text.split('.', 1)
            digits = re.match(r'\d*', rest).group(0)
            tz     = rest[len(digits):]
            text   = f"{head}.{digits[:6].ljust(6, '0')}{tz}"
        return int(datetime.fromisoformat(text).timestamp() * 1000)
    except (TypeError, ValueError):
        return None
