"""
JSON file record store.

The whole registry lives in one document shaped ``{"models": [...]}`` and is
rewritten on every mutation. There is no locking: two concurrent writers
race and the last write wins.
"""
from typing import Any, Dict, List, Optional
import json
import logging
import os
import tempfile

from app.models.model_record import ModelRecord, ModelSummary
from app.storage.base import LocalStoreError, RecordStore

logger = logging.getLogger(__name__)


class JsonRecordStore(RecordStore):
    name = "local"
    supports_binary_upload = False

    def __init__(self, path: str):
        self.path = path

    def read_all(self) -> Dict[str, Any]:
        """Read the registry document; a missing file is an empty registry"""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"models": []}
        except (OSError, ValueError) as e:
            raise LocalStoreError(f"Failed to read registry file {self.path}: {str(e)}") from e

        if not isinstance(data, dict) or not isinstance(data.get("models", []), list):
            raise LocalStoreError(f"Registry file {self.path} is not a valid registry document")
        data.setdefault("models", [])
        return data

    def write_all(self, data: Dict[str, Any]) -> None:
        """Replace the whole registry document"""
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".registry-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise LocalStoreError(f"Failed to write registry file {self.path}: {str(e)}") from e

    def find_by_id(self, model_id: str) -> Optional[Dict[str, Any]]:
        registry = self.read_all()
        return next((m for m in registry["models"] if m.get("id") == model_id), None)

    def upsert(self, record: Dict[str, Any]) -> None:
        """Replace the record with the same id, or append it"""
        registry = self.read_all()
        models = registry["models"]
        index = next((i for i, m in enumerate(models) if m.get("id") == record["id"]), None)

        if index is not None:
            models[index] = record
        else:
            models.append(record)

        self.write_all(registry)
        logger.debug(f"Saved model {record['id']} to {self.path}")

    def _to_record(self, data: Dict[str, Any]) -> ModelRecord:
        try:
            return ModelRecord.from_document(data)
        except ValueError as e:
            raise LocalStoreError(f"Malformed record in {self.path}: {str(e)}") from e

    # RecordStore contract

    def get(self, model_id: str) -> Optional[ModelRecord]:
        data = self.find_by_id(model_id)
        return self._to_record(data) if data else None

    def set(self, model_id: str, record: ModelRecord) -> None:
        document = record.model_dump()
        document["id"] = model_id
        self.upsert(document)

    def update(self, model_id: str, fields: Dict[str, Any]) -> None:
        data = self.find_by_id(model_id)
        if data is None:
            raise LocalStoreError(f"Model {model_id} is not in the local registry")
        data.update(fields)
        self.upsert(data)

    def list_all(self) -> List[ModelSummary]:
        registry = self.read_all()
        return [self._to_record(m).summary() for m in registry["models"]]
