"""
roadwatch/store/remote_base.py
Abstract base class for the shared (remote) document store.
To add a new backend: subclass RemoteStoreAdapter and implement all three.

Documents are plain dicts in the hazard wire shape:
    {"text", "coords": [lat, lon], "danger", "address", "reason", "createdAt"}
Every method raises RemoteStoreError on failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple


class RemoteStoreAdapter(ABC):

    @abstractmethod
    def create(self, document: Dict[str, Any]) -> str:
        """Store one document. Returns the backend-assigned id."""
        ...

    @abstractmethod
    def list_documents(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Every document in the collection as (id, document) pairs."""
        ...

    @abstractmethod
    def delete(self, doc_id: str) -> None:
        """Delete one document by id."""
        ...
