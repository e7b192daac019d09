from typing import Any, Dict, List, Optional

import pytest

from app.models.model_record import ModelRecord, ModelSummary
from app.storage.base import RecordStore, RemoteStoreError
from app.storage.local_store import JsonRecordStore
from app.storage.registry import RegistryFacade


class InMemoryRemoteStore(RecordStore):
    """Stand-in for the Firestore store whose calls can be made to fail"""

    name = "remote"
    supports_binary_upload = True

    def __init__(self):
        self.docs: Dict[str, ModelRecord] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.uploads: List[str] = []

    def _check(self, failing: bool) -> None:
        if failing:
            raise RemoteStoreError("remote unavailable")

    def get(self, model_id: str) -> Optional[ModelRecord]:
        self._check(self.fail_reads)
        return self.docs.get(model_id)

    def set(self, model_id: str, record: ModelRecord) -> None:
        self._check(self.fail_writes)
        self.docs[model_id] = record

    def update(self, model_id: str, fields: Dict[str, Any]) -> None:
        self._check(self.fail_writes)
        if model_id not in self.docs:
            raise RemoteStoreError(f"No document to update: {model_id}")
        self.docs[model_id] = self.docs[model_id].model_copy(update=fields)

    def list_all(self) -> List[ModelSummary]:
        self._check(self.fail_reads)
        return [record.summary() for record in self.docs.values()]

    def upload_blob(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        self._check(self.fail_writes)
        self.uploads.append(filename)
        return f"https://storage.googleapis.com/test-bucket/models/{filename}"


@pytest.fixture
def registry_path(tmp_path):
    return str(tmp_path / "models-registry.json")


@pytest.fixture
def local_store(registry_path):
    return JsonRecordStore(registry_path)


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def local_registry(local_store):
    return RegistryFacade(local_store)


@pytest.fixture
def remote_registry(local_store, remote_store):
    return RegistryFacade(local_store, remote_store)


def make_record(model_id: str = "model-1", url: str = "https://example.com/a.glb", active: bool = True) -> ModelRecord:
    return ModelRecord(
        id=model_id,
        modelUrl=url,
        active=active,
        fileName=url,
        createdAt="2024-01-01T00:00:00Z",
    )
