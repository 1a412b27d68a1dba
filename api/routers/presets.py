"""
Preset catalogue for simple-options submitters
"""
from typing import List

from fastapi import APIRouter

from api.models.job import PresetInfo, list_presets

router = APIRouter()


@router.get("/presets", response_model=List[PresetInfo])
async def get_presets() -> List[PresetInfo]:
    """List quality presets with their descriptions and FFmpeg arguments."""
    return list_presets()
