"""Narration voices router."""

from fastapi import APIRouter

from ..dependencies import StudioServiceDep
from ..models.responses import VoiceResponse

router = APIRouter(prefix="/voices", tags=["voices"])


@router.get("", response_model=list[VoiceResponse])
async def list_voices(service: StudioServiceDep) -> list[VoiceResponse]:
    """List TTS voices, falling back to the built-in list."""
    return await service.list_voices()
