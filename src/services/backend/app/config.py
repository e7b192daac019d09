from typing import Optional
import os
import logging

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_REGISTRY_FILE = os.path.join(BACKEND_DIR, "models-registry.json")

# Accepted 3D model formats for binary uploads
ALLOWED_EXTENSIONS = [".glb", ".gltf", ".obj", ".fbx", ".dae"]


class RegistryConfig(BaseModel):
    """Startup configuration for the registry and its storage backends"""
    service_account_json: Optional[str] = None
    service_account_path: Optional[str] = None
    storage_bucket: Optional[str] = None
    collection: str = "models"
    registry_file: str = DEFAULT_REGISTRY_FILE
    remote_timeout: float = 10.0
    local_fallback_on_miss: bool = True
    max_upload_bytes: int = 50 * 1024 * 1024
    viewer_base_url: Optional[str] = None
    port: int = 3000
    log_level: str = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> RegistryConfig:
    """Build the config from environment variables, reading .env first if present"""
    load_dotenv()

    # Empty strings count as unset, the same as a missing variable
    def env(name: str) -> Optional[str]:
        value = os.environ.get(name, "").strip()
        return value or None

    config = RegistryConfig(
        service_account_json=env("FIREBASE_SERVICE_ACCOUNT"),
        service_account_path=env("FIREBASE_SERVICE_ACCOUNT_PATH"),
        storage_bucket=env("FIREBASE_STORAGE_BUCKET"),
        collection=env("FIRESTORE_COLLECTION") or "models",
        registry_file=env("REGISTRY_FILE") or DEFAULT_REGISTRY_FILE,
        remote_timeout=float(env("REMOTE_TIMEOUT_SECONDS") or 10.0),
        local_fallback_on_miss=_env_flag("LOCAL_FALLBACK_ON_MISS", True),
        max_upload_bytes=int(env("MAX_UPLOAD_BYTES") or 50 * 1024 * 1024),
        viewer_base_url=env("VIEWER_BASE_URL"),
        port=int(env("PORT") or 3000),
        log_level=(env("LOG_LEVEL") or "INFO").upper(),
    )
    logger.debug(f"Loaded registry config, registry file: {config.registry_file}")
    return config
