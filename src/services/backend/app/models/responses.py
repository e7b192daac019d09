from typing import List
from pydantic import BaseModel

from app.models.model_record import ModelSummary

# Error messages shared by the routers
ERROR_MODEL_NOT_FOUND = "Model not found"
ERROR_ACCESS_DISABLED = "Access Disabled"
ERROR_INVALID_REQUEST = "Invalid request"


class UploadResponse(BaseModel):
    success: bool
    id: str
    url: str
    message: str


class ModelUrlResponse(BaseModel):
    modelUrl: str


class ModelListResponse(BaseModel):
    models: List[ModelSummary]


class ActiveUpdateResponse(BaseModel):
    success: bool
    id: str
    active: bool
    message: str


class QrResponse(BaseModel):
    id: str
    viewerUrl: str
    qr: str
