"""Export download router."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from ..dependencies import StudioServiceDep

router = APIRouter(prefix="/projects/{project_id}/export", tags=["export"])


@router.get("/download")
def download_export(project_id: str, service: StudioServiceDep) -> FileResponse:
    """Download the latest export zip."""
    try:
        path = service.export_archive(project_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return FileResponse(path, media_type="application/zip", filename=path.name)
