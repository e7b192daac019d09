from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from app.config import RegistryConfig
from app.models.responses import QrResponse
from app.routers.dependencies import get_config
from app.services.qr_code import render_qr, viewer_url

router = APIRouter(tags=["qr"])
logger = logging.getLogger(__name__)


@router.get("/qr/{model_id}", response_model=QrResponse)
def get_qr_code(model_id: str, request: Request, config: RegistryConfig = Depends(get_config)):
    """QR code pointing at the AR viewer page for a model"""
    base_url = config.viewer_base_url or str(request.base_url)
    target = viewer_url(base_url, model_id)

    try:
        qr = render_qr(target)
    except Exception as e:
        logger.error(f"QR generation failed: {str(e)}")
        return JSONResponse(status_code=500, content={"error": "QR generation failed"})

    return QrResponse(id=model_id, viewerUrl=target, qr=qr)
