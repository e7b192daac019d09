"""
Firestore record store with Cloud Storage for uploaded model files.

One document per record in a flat collection keyed by record id. Any
exception raised by the SDK, timeouts included, is reported as a
``RemoteStoreError`` so the registry can fall back to the local store.
"""
from typing import Any, Dict, List, Optional
import logging
import os
import uuid

from firebase_admin import firestore

from app.models.model_record import ModelRecord, ModelSummary
from app.storage.base import RecordStore, RemoteStoreError

logger = logging.getLogger(__name__)


class FirestoreRecordStore(RecordStore):
    name = "remote"

    def __init__(self, db, bucket=None, collection: str = "models", timeout: Optional[float] = 10.0):
        self.db = db
        self.bucket = bucket
        self.collection = collection
        self.timeout = timeout

    @property
    def supports_binary_upload(self) -> bool:
        return self.bucket is not None

    def _doc(self, model_id: str):
        return self.db.collection(self.collection).document(model_id)

    def _to_record(self, data: Dict[str, Any], doc_id: str) -> ModelRecord:
        try:
            return ModelRecord.from_document(data, doc_id)
        except ValueError as e:
            raise RemoteStoreError(f"Malformed Firestore document {doc_id}: {str(e)}") from e

    def get(self, model_id: str) -> Optional[ModelRecord]:
        try:
            snapshot = self._doc(model_id).get(timeout=self.timeout)
        except Exception as e:
            raise RemoteStoreError(f"Firestore read of {model_id} failed: {str(e)}") from e

        if not snapshot.exists:
            return None
        return self._to_record(snapshot.to_dict() or {}, model_id)

    def set(self, model_id: str, record: ModelRecord) -> None:
        document = record.model_dump()
        document["id"] = model_id
        # The server assigns the creation time
        document["createdAt"] = firestore.SERVER_TIMESTAMP
        try:
            self._doc(model_id).set(document, timeout=self.timeout)
        except Exception as e:
            raise RemoteStoreError(f"Firestore write of {model_id} failed: {str(e)}") from e

    def update(self, model_id: str, fields: Dict[str, Any]) -> None:
        """Merge-write the given fields; fails if the document does not exist"""
        try:
            self._doc(model_id).update(fields, timeout=self.timeout)
        except Exception as e:
            raise RemoteStoreError(f"Firestore update of {model_id} failed: {str(e)}") from e

    def list_all(self) -> List[ModelSummary]:
        try:
            snapshots = list(self.db.collection(self.collection).stream(timeout=self.timeout))
        except Exception as e:
            raise RemoteStoreError(f"Firestore listing failed: {str(e)}") from e

        return [
            self._to_record(snapshot.to_dict() or {}, snapshot.id).summary()
            for snapshot in snapshots
        ]

    def upload_blob(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """Store an uploaded model file publicly and return its URL"""
        if self.bucket is None:
            raise RemoteStoreError("No storage bucket configured")

        extension = os.path.splitext(filename)[1]
        blob_path = f"models/{uuid.uuid4()}{extension}"

        try:
            blob = self.bucket.blob(blob_path)
            blob.metadata = {"originalName": filename}
            blob.upload_from_string(
                data,
                content_type=content_type or "application/octet-stream",
                timeout=self.timeout,
            )
            blob.make_public()
        except Exception as e:
            raise RemoteStoreError(f"Upload of {filename} to storage failed: {str(e)}") from e

        logger.info(f"Uploaded {filename} to bucket {self.bucket.name} as {blob_path}")
        return f"https://storage.googleapis.com/{self.bucket.name}/{blob_path}"
