"""
Create, fetch, list and toggle operations on top of the registry facade.

These functions hold the request rules (payload shape, file type, the
boolean flag check, access control) and raise ``ModelAccessError``
subclasses that the routers turn into HTTP responses. Validation always
happens before any store is touched.
"""
from typing import List, Optional
from urllib.parse import urlparse
import logging
import os

from pydantic import BaseModel

from app.config import ALLOWED_EXTENSIONS
from app.models.model_record import ModelDraft, ModelRecord, ModelSummary
from app.storage.registry import RegistryFacade

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class ModelAccessError(Exception):
    status_code = 500


class ValidationFault(ModelAccessError):
    status_code = 400


class BackendRequiredError(ModelAccessError):
    status_code = 503


class AccessDisabledError(ModelAccessError):
    status_code = 403


class RecordNotFoundError(ModelAccessError):
    status_code = 404


class BinaryUpload(BaseModel):
    filename: str
    data: bytes
    content_type: Optional[str] = None


def validate_model_url(url: str) -> str:
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationFault(f"Model URL must be an absolute http(s) URL: {url}")
    return url


def validate_upload(upload: BinaryUpload, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    ext = os.path.splitext(upload.filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationFault("Invalid file type. Only 3D model files are allowed.")
    if len(upload.data) > max_bytes:
        raise ValidationFault(f"File too large, the limit is {max_bytes} bytes")


def create_record(
    facade: RegistryFacade,
    url: Optional[str] = None,
    upload: Optional[BinaryUpload] = None,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> ModelRecord:
    """Register a model from an uploaded file or from a URL.

    A file takes precedence over a URL. Files need a backend that can hold
    binaries; URLs work with either backend.
    """
    if upload is not None:
        validate_upload(upload, max_upload_bytes)
        if not facade.supports_binary_upload:
            raise BackendRequiredError(
                "File uploads require Firebase Storage. URL uploads work without Firebase."
            )
        model_url = facade.store_binary(upload.data, upload.filename, upload.content_type)
        draft = ModelDraft(modelUrl=model_url, fileName=upload.filename)
    elif url:
        model_url = validate_model_url(url)
        draft = ModelDraft(modelUrl=model_url, fileName=model_url)
    else:
        raise ValidationFault("Either a file or URL must be provided")

    record = facade.create(draft)
    logger.info(f"Registered model {record.id} -> {record.modelUrl}")
    return record


def get_record(facade: RegistryFacade, model_id: str) -> str:
    """Return the model URL of an active record"""
    record = facade.get(model_id)
    if record is None:
        raise RecordNotFoundError(f"Model {model_id} not found")
    if not record.active:
        raise AccessDisabledError(f"Access to model {model_id} is disabled")
    return record.modelUrl


def list_records(facade: RegistryFacade) -> List[ModelSummary]:
    return facade.list()


def set_active(facade: RegistryFacade, model_id: str, active) -> ModelRecord:
    # bool only: "yes", 1 and None are all rejected
    if not isinstance(active, bool):
        raise ValidationFault("active must be a boolean value")

    record = facade.set_active(model_id, active)
    if record is None:
        raise RecordNotFoundError(f"Model {model_id} not found")

    logger.info(f"Model {model_id} {'enabled' if active else 'disabled'}")
    return record
