from fastapi import Request

from app.config import RegistryConfig
from app.storage.registry import RegistryFacade


def get_registry(request: Request) -> RegistryFacade:
    """Registry facade created at startup"""
    return request.app.state.registry


def get_config(request: Request) -> RegistryConfig:
    return request.app.state.config
