"""
Registry facade over the Firestore and JSON file record stores.

The backend is chosen once, when the facade is initialized. Setting up
Firestore never raises: any problem with the credentials or the SDK leaves
the registry on the local JSON file. During requests a remote failure is
retried once against the local store; callers only see an error when every
backend that was tried has failed.
"""
from typing import List, Optional, Tuple
import json
import logging
import uuid

import firebase_admin
from firebase_admin import credentials, firestore, storage

from app.config import RegistryConfig
from app.models.model_record import ModelDraft, ModelRecord, ModelSummary, utc_now_iso
from app.storage.base import (
    BackendMode,
    RecordStore,
    RegistryUnavailableError,
    RemoteStoreError,
    StoreError,
)
from app.storage.local_store import JsonRecordStore
from app.storage.remote_store import FirestoreRecordStore

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "model-registry"


def _load_credential(config: RegistryConfig):
    """Pick the credential source: inline JSON, then a file path, then ambient defaults"""
    if config.service_account_json:
        return credentials.Certificate(json.loads(config.service_account_json))
    if config.service_account_path:
        return credentials.Certificate(config.service_account_path)
    # None makes firebase_admin use application default credentials
    return None


def connect_firestore(config: RegistryConfig) -> FirestoreRecordStore:
    """Build the remote store from config. Raises on any setup failure."""
    if not config.storage_bucket:
        raise ValueError("FIREBASE_STORAGE_BUCKET is not set")

    credential = _load_credential(config)
    try:
        app = firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        app = firebase_admin.initialize_app(
            credential,
            {"storageBucket": config.storage_bucket},
            name=FIREBASE_APP_NAME,
        )

    db = firestore.client(app=app)
    bucket = storage.bucket(app=app)
    return FirestoreRecordStore(
        db,
        bucket=bucket,
        collection=config.collection,
        timeout=config.remote_timeout,
    )


class RegistryFacade:
    def __init__(
        self,
        local_store: RecordStore,
        remote_store: Optional[RecordStore] = None,
        local_fallback_on_miss: bool = True,
    ):
        self.local = local_store
        self.remote = remote_store
        # When set, a remote miss or an empty remote listing also checks the local store
        self.local_fallback_on_miss = local_fallback_on_miss

    @classmethod
    def from_config(cls, config: RegistryConfig) -> "RegistryFacade":
        facade = cls(
            JsonRecordStore(config.registry_file),
            local_fallback_on_miss=config.local_fallback_on_miss,
        )
        facade.initialize(config)
        return facade

    def initialize(self, config: RegistryConfig) -> BackendMode:
        """Try to set up the remote backend; fall back to local storage on any failure"""
        self.remote = None

        if not config.storage_bucket:
            logger.warning("Firebase not configured, using JSON file storage")
            logger.warning(f"Registry file: {config.registry_file}")
            logger.warning("File uploads will not work without Firebase Storage")
            return self.mode

        try:
            self.remote = connect_firestore(config)
        except Exception as e:
            logger.warning(f"Firebase initialization failed: {str(e)}")
            logger.warning(f"Falling back to JSON file storage ({config.registry_file})")
            logger.warning("File uploads will not work without Firebase Storage")
            return self.mode

        logger.info("Firebase initialized successfully")
        logger.info(f"  - Firestore collection: {config.collection}")
        logger.info(f"  - Storage bucket: {config.storage_bucket}")
        return self.mode

    @property
    def mode(self) -> BackendMode:
        return BackendMode.REMOTE if self.remote is not None else BackendMode.LOCAL

    @property
    def active_store(self) -> RecordStore:
        return self.remote if self.remote is not None else self.local

    @property
    def supports_binary_upload(self) -> bool:
        return bool(self.active_store.supports_binary_upload)

    def store_binary(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """Store an uploaded file in the active backend and return its public URL"""
        try:
            return self.active_store.upload_blob(data, filename, content_type)
        except StoreError as e:
            raise RegistryUnavailableError(f"Failed to store {filename}: {str(e)}") from e

    def create(self, draft: ModelDraft) -> ModelRecord:
        record = ModelRecord(
            id=str(uuid.uuid4()),
            modelUrl=draft.modelUrl,
            active=True,
            fileName=draft.fileName,
            createdAt=utc_now_iso(),
        )

        if self.remote is not None:
            try:
                self.remote.set(record.id, record)
                return record
            except RemoteStoreError as e:
                # A local copy is only reachable later if lookups consult local on a remote miss
                if not self.local_fallback_on_miss:
                    raise RegistryUnavailableError(f"Failed to save model {record.id}: {str(e)}") from e
                logger.warning(f"Firestore write error, saving {record.id} to JSON registry: {str(e)}")

        try:
            self.local.set(record.id, record)
        except StoreError as e:
            raise RegistryUnavailableError(f"Failed to save model {record.id}: {str(e)}") from e
        return record

    def _lookup(self, model_id: str) -> Tuple[Optional[ModelRecord], Optional[BackendMode]]:
        """Find a record and report which backend holds it"""
        if self.remote is not None:
            try:
                record = self.remote.get(model_id)
                if record is not None:
                    return record, BackendMode.REMOTE
                if not self.local_fallback_on_miss:
                    return None, None
            except RemoteStoreError as e:
                logger.warning(f"Firestore read error, falling back to JSON: {str(e)}")

        try:
            record = self.local.get(model_id)
        except StoreError as e:
            raise RegistryUnavailableError(f"Failed to read model {model_id}: {str(e)}") from e
        return record, (BackendMode.LOCAL if record is not None else None)

    def get(self, model_id: str) -> Optional[ModelRecord]:
        record, _ = self._lookup(model_id)
        return record

    def list(self) -> List[ModelSummary]:
        models: List[ModelSummary] = []
        remote_ok = False

        if self.remote is not None:
            try:
                models = self.remote.list_all()
                remote_ok = True
            except RemoteStoreError as e:
                logger.warning(f"Firestore read error, falling back to JSON: {str(e)}")
            if models or (remote_ok and not self.local_fallback_on_miss):
                return models

        try:
            return self.local.list_all()
        except StoreError as e:
            if remote_ok:
                logger.warning(f"JSON registry read error: {str(e)}")
                return models
            raise RegistryUnavailableError(f"Failed to list models: {str(e)}") from e

    def set_active(self, model_id: str, active: bool) -> Optional[ModelRecord]:
        record, source = self._lookup(model_id)
        if record is None:
            return None

        updated = record.model_copy(update={"active": active})

        if source == BackendMode.REMOTE:
            try:
                self.remote.update(model_id, {"active": active})
                return updated
            except RemoteStoreError as e:
                logger.warning(f"Firestore update error, falling back to JSON: {str(e)}")

        try:
            self.local.set(model_id, updated)
        except StoreError as e:
            raise RegistryUnavailableError(f"Failed to update model {model_id}: {str(e)}") from e
        return updated
