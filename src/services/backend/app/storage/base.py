"""
Common contract for the record stores.

Both stores expose the same read/write methods so the registry can treat
them interchangeably. Failures are reported as ``StoreError`` subclasses;
a missing record is never an error and is returned as ``None``.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from app.models.model_record import ModelRecord, ModelSummary


class BackendMode(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


class StoreError(Exception):
    """A store call failed for a reason other than a missing record"""


class RemoteStoreError(StoreError):
    """Connectivity, auth, timeout or SDK failure in the remote store"""


class LocalStoreError(StoreError):
    """The local registry file could not be read or written"""


class RegistryUnavailableError(Exception):
    """Every backend tried for an operation failed"""


class RecordStore:
    name = "store"
    supports_binary_upload = False

    def get(self, model_id: str) -> Optional[ModelRecord]:
        raise NotImplementedError

    def set(self, model_id: str, record: ModelRecord) -> None:
        raise NotImplementedError

    def update(self, model_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def list_all(self) -> List[ModelSummary]:
        raise NotImplementedError

    def upload_blob(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        raise StoreError(f"The {self.name} store cannot hold binary uploads")
