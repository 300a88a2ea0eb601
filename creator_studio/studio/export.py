"""
Export Aggregator - bundles approved artifacts for download.

Only approved videos, approved images and (optionally) an approved narration
make it into the bundle. Each file is fetched on its own; a failed fetch is
reported and skipped, the rest of the export carries on.
"""

import base64
import logging
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal

import httpx

from .models import ArtifactStatus, Stage
from .stage_store import StageStore

logger = logging.getLogger(__name__)

EXPORT_NAME = "creator_studio_export"

ExportFormat = Literal["zip", "individual"]


@dataclass
class ExportEntry:
    """One file to put in the bundle."""

    name: str    # path inside the bundle, e.g. videos/video_1.mp4
    source: str  # http(s) URL, data: URL or local path


class ExportAggregator:
    """Collects approved artifacts from a StageStore and writes a bundle."""

    def __init__(
        self,
        store: StageStore,
        client: httpx.AsyncClient | None = None,
        notify: Callable[[str, str], None] | None = None,
    ):
        """
        Args:
            store: Stage store to read approved artifacts from.
            client: Optional HTTP client for remote files.
            notify: Callback receiving (level, message) for user-facing notices.
        """
        self.store = store
        self._client = client
        self._notify = notify

    def collect(self, include_narration: bool = True) -> list[ExportEntry]:
        """List the approved files that belong in the bundle."""
        entries: list[ExportEntry] = []

        videos = [v for v in self.store.items(Stage.VIDEOS) if v.get("approved") and v.get("url")]
        for i, video in enumerate(videos, start=1):
            entries.append(ExportEntry(f"videos/video_{i}.mp4", video["url"]))

        images = [img for img in self.store.items(Stage.IMAGES) if img.get("approved") and img.get("url")]
        for i, image in enumerate(images, start=1):
            entries.append(ExportEntry(f"images/image_{i}.png", image["url"]))

        if include_narration:
            narration = self.store.get(Stage.NARRATION)
            audio_path = narration.artifact.get("audio_path")
            if narration.approved and narration.status == ArtifactStatus.COMPLETED and audio_path:
                entries.append(ExportEntry("narration.mp3", audio_path))

        return entries

    async def fetch(self, source: str) -> bytes:
        """Read one source as bytes."""
        if source.startswith("data:"):
            _, _, payload = source.partition(",")
            return base64.b64decode(payload)

        if source.startswith(("http://", "https://")):
            client = self._client or httpx.AsyncClient(timeout=120.0, follow_redirects=True)
            try:
                response = await client.get(source)
                response.raise_for_status()
                return response.content
            finally:
                if client is not self._client:
                    await client.aclose()

        return Path(source).read_bytes()

    async def build(
        self,
        format: ExportFormat = "zip",
        include_narration: bool = True,
    ) -> dict:
        """
        Fetch every approved file and write the bundle.

        Args:
            format: "zip" for a single archive, "individual" for loose files.
            include_narration: Whether to add the approved narration audio.

        Returns:
            Manifest dict with archive_path, format, files and failed.
        """
        if format not in ("zip", "individual"):
            raise ValueError(f"Unknown export format: {format}")

        entries = self.collect(include_narration=include_narration)
        self.store.exports_dir.mkdir(parents=True, exist_ok=True)

        fetched: list[tuple[ExportEntry, bytes]] = []
        failed: list[dict] = []
        for entry in entries:
            try:
                fetched.append((entry, await self.fetch(entry.source)))
            except (httpx.HTTPError, OSError, ValueError) as e:
                logger.warning("Export skipped %s: %s", entry.name, e)
                if self._notify:
                    self._notify("error", f"Could not download {entry.name}: {e}")
                failed.append({"name": entry.name, "source": entry.source, "error": str(e)})

        if format == "zip":
            archive_path = self.store.exports_dir / f"{EXPORT_NAME}.zip"
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for entry, content in fetched:
                    zf.writestr(entry.name, content)
        else:
            archive_path = self.store.exports_dir / EXPORT_NAME
            # Build beside the old export, then swap, so no earlier file survives
            staging = self.store.exports_dir / f".{EXPORT_NAME}.partial"
            shutil.rmtree(staging, ignore_errors=True)
            for entry, content in fetched:
                target = staging / entry.name
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            staging.mkdir(exist_ok=True)
            shutil.rmtree(archive_path, ignore_errors=True)
            staging.rename(archive_path)

        logger.info("Exported %d file(s) to %s (%d failed)", len(fetched), archive_path, len(failed))
        return {
            "archive_path": str(archive_path),
            "format": format,
            "files": [entry.name for entry, _ in fetched],
            "failed": failed,
        }
