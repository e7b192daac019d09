from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import json
import logging

from app.config import RegistryConfig
from app.models.responses import (
    ERROR_ACCESS_DISABLED,
    ERROR_INVALID_REQUEST,
    ERROR_MODEL_NOT_FOUND,
    ActiveUpdateResponse,
    ModelListResponse,
    ModelUrlResponse,
    UploadResponse,
)
from app.services import model_access
from app.services.model_access import (
    AccessDisabledError,
    BackendRequiredError,
    BinaryUpload,
    RecordNotFoundError,
    ValidationFault,
)
from app.routers.dependencies import get_config, get_registry
from app.storage.base import RegistryUnavailableError
from app.storage.registry import RegistryFacade

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["models"])


def error_response(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


async def _read_upload_request(request: Request):
    """Pull the model file and/or URL out of a multipart, form or JSON body"""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        file = form.get("model")
        url = form.get("url")
        upload = None
        if file is not None and not isinstance(file, str):
            upload = BinaryUpload(
                filename=file.filename or "",
                data=await file.read(),
                content_type=file.content_type,
            )
        return (url if isinstance(url, str) else None), upload

    body = await request.body()
    if not body:
        return None, None
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ValidationFault("Request body must be JSON or multipart form data") from e
    url = payload.get("url") if isinstance(payload, dict) else None
    return (url if isinstance(url, str) else None), None


@router.post("/uploadResult", response_model=UploadResponse)
async def upload_result(
    request: Request,
    registry: RegistryFacade = Depends(get_registry),
    config: RegistryConfig = Depends(get_config),
):
    """Register a model from an uploaded file or a URL"""
    try:
        url, upload = await _read_upload_request(request)
        logger.info(f"Models router: received upload request (file: {upload.filename if upload else None}, url: {url})")
        record = await run_in_threadpool(
            model_access.create_record,
            registry,
            url=url,
            upload=upload,
            max_upload_bytes=config.max_upload_bytes,
        )
    except ValidationFault as e:
        return error_response(400, str(e))
    except BackendRequiredError as e:
        return error_response(503, "File uploads require Firebase Storage", str(e))
    except RegistryUnavailableError as e:
        logger.error(f"Upload error: {str(e)}")
        return error_response(500, "Failed to upload model", str(e))

    return UploadResponse(
        success=True,
        id=record.id,
        url=record.modelUrl,
        message="Model uploaded successfully",
    )


@router.get("/model/{model_id}", response_model=ModelUrlResponse)
def get_model(model_id: str, registry: RegistryFacade = Depends(get_registry)):
    """Return the model URL when the model exists and is active"""
    try:
        model_url = model_access.get_record(registry, model_id)
    except RecordNotFoundError:
        return error_response(404, ERROR_MODEL_NOT_FOUND)
    except AccessDisabledError:
        return error_response(403, ERROR_ACCESS_DISABLED)
    except RegistryUnavailableError as e:
        logger.error(f"Get model error: {str(e)}")
        return error_response(500, "Failed to retrieve model", str(e))

    return ModelUrlResponse(modelUrl=model_url)


@router.get("/models", response_model=ModelListResponse)
def list_models(registry: RegistryFacade = Depends(get_registry)):
    """List all models with their active status"""
    try:
        models = model_access.list_records(registry)
    except RegistryUnavailableError as e:
        logger.error(f"Get all models error: {str(e)}")
        return error_response(500, "Failed to retrieve models", str(e))

    logger.info(f"Models router: listing {len(models)} models")
    return ModelListResponse(models=models)


async def _read_active_flag(request: Request) -> Any:
    """The raw ``active`` value of a JSON body, or None for any other body shape"""
    body = await request.body()
    try:
        payload = json.loads(body) if body else None
    except ValueError:
        return None
    return payload.get("active") if isinstance(payload, dict) else None


@router.patch("/model/{model_id}", response_model=ActiveUpdateResponse)
async def update_model(
    model_id: str,
    request: Request,
    registry: RegistryFacade = Depends(get_registry),
):
    """Enable or disable access to a model"""
    try:
        active = await _read_active_flag(request)
        record = await run_in_threadpool(model_access.set_active, registry, model_id, active)
    except ValidationFault as e:
        return error_response(400, ERROR_INVALID_REQUEST, str(e))
    except RecordNotFoundError:
        return error_response(404, ERROR_MODEL_NOT_FOUND)
    except RegistryUnavailableError as e:
        logger.error(f"Update model error: {str(e)}")
        return error_response(500, "Failed to update model", str(e))

    return ActiveUpdateResponse(
        success=True,
        id=record.id,
        active=record.active,
        message=f"Model {'enabled' if record.active else 'disabled'} successfully",
    )
