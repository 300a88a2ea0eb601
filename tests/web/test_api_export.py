"""Tests for the export download and voices API."""

import io
import zipfile
from typing import Any, Callable

from fastapi.testclient import TestClient


class TestExportDownload:
    """Tests for downloading the export bundle."""

    def test_download_after_export(
        self, test_client: TestClient, project_id: str, advance: Callable[..., None]
    ) -> None:
        advance(project_id, "script", "narration", "image_prompts", "images", "videos", "export")

        response = test_client.get(f"/api/v1/projects/{project_id}/export/download")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert sorted(zf.namelist()) == [
                "images/image_1.png",
                "images/image_2.png",
                "narration.mp3",
                "videos/video_1.mp4",
                "videos/video_2.mp4",
            ]
            assert zf.read("images/image_1.png") == b"mock-image-1"

    def test_export_without_narration(
        self,
        test_client: TestClient,
        project_id: str,
        advance: Callable[..., None],
        wait_for_job: Callable[[str], dict[str, Any]],
    ) -> None:
        advance(project_id, "script", "image_prompts", "images", "videos")

        response = test_client.post(
            f"/api/v1/projects/{project_id}/stages/export/run",
            json={"format": "zip", "include_narration": False},
        )
        assert wait_for_job(response.json()["job_id"])["status"] == "completed"

        export = test_client.get(f"/api/v1/projects/{project_id}/stages/export").json()
        assert "narration.mp3" not in export["artifact"]["files"]
        assert len(export["artifact"]["files"]) == 4

    def test_individual_export_has_no_archive(
        self,
        test_client: TestClient,
        project_id: str,
        advance: Callable[..., None],
        wait_for_job: Callable[[str], dict[str, Any]],
    ) -> None:
        advance(project_id, "script", "image_prompts", "images", "videos")
        response = test_client.post(
            f"/api/v1/projects/{project_id}/stages/export/run", json={"format": "individual"}
        )
        wait_for_job(response.json()["job_id"])

        response = test_client.get(f"/api/v1/projects/{project_id}/export/download")
        assert response.status_code == 400

    def test_nothing_exported(self, test_client: TestClient, project_id: str) -> None:
        response = test_client.get(f"/api/v1/projects/{project_id}/export/download")
        assert response.status_code == 404
        assert response.json()["detail"] == "No export found for project: cat-facts"


class TestVoices:
    """Tests for the voices endpoint."""

    def test_list_voices(self, test_client: TestClient) -> None:
        response = test_client.get("/api/v1/voices")

        assert response.status_code == 200
        voices = response.json()
        assert voices[0] == {
            "voice_id": "onwK4e9ZLuTAKqWW03F9",
            "name": "Daniel",
            "category": "premade",
        }
        assert len(voices) == 8
