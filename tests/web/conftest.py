"""Test fixtures for web backend tests."""

import time
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from creator_studio.config import Config
from creator_studio.web.backend import dependencies
from creator_studio.web.backend.config import WebConfig
from creator_studio.web.backend.services.job_manager import JobManager
from creator_studio.web.backend.services.project_service import StoreRegistry
from creator_studio.web.backend.websocket.manager import WebSocketManager


@pytest.fixture
def test_projects_dir(tmp_path: Path) -> Path:
    """Create a temporary projects directory."""
    projects_dir = tmp_path / "projects"
    projects_dir.mkdir()
    return projects_dir


@pytest.fixture
def test_config(test_projects_dir: Path) -> WebConfig:
    """Create a test configuration."""
    return WebConfig(
        host="127.0.0.1",
        port=8000,
        projects_dir=test_projects_dir,
        cors_origins=["*"],
        config_path=None,
        mock_providers=True,
    )


@pytest.fixture
def web_studio_config() -> Config:
    """Mock providers, two prompts, no delay between items."""
    config = Config().use_mock_providers()
    config.generation.prompt_count = 2
    config.generation.item_delay_seconds = 0
    return config


@pytest.fixture
def job_manager() -> Generator[JobManager, None, None]:
    """Create a fresh job manager for testing."""
    manager = JobManager(max_workers=2)
    yield manager
    manager.shutdown(wait=True)


@pytest.fixture
def ws_manager() -> WebSocketManager:
    """Create a fresh WebSocket manager for testing."""
    return WebSocketManager()


@pytest.fixture
def test_client(
    test_config: WebConfig,
    web_studio_config: Config,
    job_manager: JobManager,
    ws_manager: WebSocketManager,
) -> Generator[TestClient, None, None]:
    """Create a test client with mocked dependencies."""
    from creator_studio.web.backend.app import include_routes

    # Clear any cached dependencies
    dependencies.get_config.cache_clear()
    dependencies.get_job_manager.cache_clear()
    dependencies.get_websocket_manager.cache_clear()
    dependencies.get_store_registry.cache_clear()

    job_manager.set_websocket_manager(ws_manager)
    registry = StoreRegistry()

    # Create app without lifespan to avoid dependency issues
    app = FastAPI(title="Creator Studio API - Test")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    include_routes(app)

    # Override dependencies
    app.dependency_overrides[dependencies.get_config] = lambda: test_config
    app.dependency_overrides[dependencies.get_studio_config] = lambda: web_studio_config
    app.dependency_overrides[dependencies.get_job_manager] = lambda: job_manager
    app.dependency_overrides[dependencies.get_websocket_manager] = lambda: ws_manager
    app.dependency_overrides[dependencies.get_store_registry] = lambda: registry

    with TestClient(app) as client:
        yield client

    # Cleanup
    app.dependency_overrides.clear()


@pytest.fixture
def project_id(test_client: TestClient) -> str:
    """Create a project through the API."""
    response = test_client.post(
        "/api/v1/projects",
        json={"id": "cat-facts", "title": "Cat Facts", "description": "A short about cats"},
    )
    assert response.status_code == 201
    return "cat-facts"


@pytest.fixture
def wait_for_job(test_client: TestClient) -> Callable[[str], dict[str, Any]]:
    """Poll a job until it finishes and return its final state."""

    def wait(job_id: str, timeout: float = 5.0) -> dict[str, Any]:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            job = test_client.get(f"/api/v1/jobs/{job_id}").json()
            if job["status"] in ("completed", "failed"):
                return job
            time.sleep(0.05)
        raise AssertionError(f"Job {job_id} did not finish in {timeout}s")

    return wait


@pytest.fixture
def advance(
    test_client: TestClient, wait_for_job: Callable[[str], dict[str, Any]]
) -> Callable[..., None]:
    """Run and approve the given stages in order."""

    def run_and_approve(project_id: str, *stages: str) -> None:
        for stage in stages:
            body = {"message": "a short about cats"} if stage == "script" else {}
            response = test_client.post(
                f"/api/v1/projects/{project_id}/stages/{stage}/run", json=body
            )
            assert response.status_code == 202, response.text
            job = wait_for_job(response.json()["job_id"])
            assert job["status"] == "completed", job["error"]
            response = test_client.post(f"/api/v1/projects/{project_id}/stages/{stage}/approve")
            assert response.status_code == 200, response.text

    return run_and_approve
