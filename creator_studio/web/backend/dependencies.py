"""Dependency injection for FastAPI."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends

from creator_studio.config import Config, load_config

from .config import WebConfig
from .services.job_manager import JobManager
from .services.project_service import ProjectService, StoreRegistry
from .services.studio_service import StudioService
from .websocket.manager import WebSocketManager


@lru_cache
def get_config() -> WebConfig:
    """Get the web configuration (cached)."""
    return WebConfig()


@lru_cache
def get_websocket_manager() -> WebSocketManager:
    """Get the WebSocket manager (cached singleton)."""
    return WebSocketManager()


@lru_cache
def get_job_manager() -> JobManager:
    """Get the job manager (cached singleton)."""
    return JobManager()


@lru_cache
def get_store_registry() -> StoreRegistry:
    """Get the shared stage stores (cached singleton)."""
    return StoreRegistry()


def get_projects_dir(config: Annotated[WebConfig, Depends(get_config)]) -> Path:
    """Get the projects directory from config."""
    return config.projects_dir


def get_studio_config(config: Annotated[WebConfig, Depends(get_config)]) -> Config:
    """Load the studio config, switched to mock providers when requested."""
    studio_config = load_config(config.config_path)
    if config.mock_providers:
        studio_config = studio_config.use_mock_providers()
    return studio_config


def get_project_service(
    projects_dir: Annotated[Path, Depends(get_projects_dir)],
    registry: Annotated[StoreRegistry, Depends(get_store_registry)],
) -> ProjectService:
    """Get the project service."""
    return ProjectService(projects_dir=projects_dir, registry=registry)


def get_studio_service(
    job_manager: Annotated[JobManager, Depends(get_job_manager)],
    projects_dir: Annotated[Path, Depends(get_projects_dir)],
    studio_config: Annotated[Config, Depends(get_studio_config)],
    registry: Annotated[StoreRegistry, Depends(get_store_registry)],
) -> StudioService:
    """Get the studio service."""
    return StudioService(
        job_manager=job_manager,
        projects_dir=projects_dir,
        config=studio_config,
        registry=registry,
    )


# Type aliases for cleaner router signatures
JobManagerDep = Annotated[JobManager, Depends(get_job_manager)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
StudioServiceDep = Annotated[StudioService, Depends(get_studio_service)]
