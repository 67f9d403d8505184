from fastapi import APIRouter, Depends, HTTPException
import httpx
import logging

from curatarr.progress import switch_progress
from curatarr.schemas import SwitchMediaServerRequest
from curatarr.services.media_server import MediaServerFactory, media_server_factory
from curatarr.services.media_server_switch import (
    MediaServerSwitchService,
    SwitchInProgressError,
    media_server_switch_service,
)
from curatarr.services.property_catalog import UnknownMediaServerError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_switch_service() -> MediaServerSwitchService:
    return media_server_switch_service


def get_media_server_factory() -> MediaServerFactory:
    return media_server_factory


@router.get("/switch/preview/{target_server_type}")
async def preview_switch(
    target_server_type: str,
    service: MediaServerSwitchService = Depends(get_switch_service)
):
    """Preview what switching to another media server would clear and migrate."""
    try:
        preview = await service.preview_switch(target_server_type)
    except UnknownMediaServerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return preview.to_dict()


@router.post("/switch")
async def execute_switch(
    payload: SwitchMediaServerRequest,
    service: MediaServerSwitchService = Depends(get_switch_service)
):
    """Switch the active media server."""
    try:
        response = await service.execute_switch(
            payload.target_server_type,
            migrate_rules=payload.migrate_rules
        )
    except SwitchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return response.to_dict()


@router.get("/switch/status")
async def switch_status():
    """Get the state of the current or last media server switch."""
    return switch_progress.to_dict()


@router.get("/libraries")
async def get_libraries(factory: MediaServerFactory = Depends(get_media_server_factory)):
    """Get libraries from the active media server."""
    client = factory.get_client()
    if not client:
        raise HTTPException(status_code=400, detail="Media server not configured")

    try:
        libraries = await client.get_libraries()
    except httpx.HTTPError as e:
        logger.error(f"Failed to get libraries from {client.server_type}: {e}")
        raise HTTPException(status_code=502, detail=f"Media server request failed: {e}")

    return {"server_type": client.server_type, "libraries": libraries}
