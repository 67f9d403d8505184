from fastapi import APIRouter, Depends, Form, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from curatarr.database import get_session
from curatarr.models import Connection
from curatarr.services.arr import ARR_SERVICES, ArrClient
from curatarr.services.jellyfin import JellyfinClient
from curatarr.services.media_server import media_server_factory
from curatarr.services.plex import PlexClient
from curatarr.config import runtime_settings, save_media_server_credentials

router = APIRouter()


def ensure_server_can_be_configured(server_type: str):
    """Credentials may only be stored for the active (or first) media server."""
    active = runtime_settings.media_server_type
    if active and active != server_type:
        raise HTTPException(
            status_code=400,
            detail=f"{active} is the active media server; switch to {server_type} before configuring it"
        )


@router.get("/")
async def config_summary(session: AsyncSession = Depends(get_session)):
    """Current configuration."""
    result = await session.execute(select(Connection))
    connections = {
        c.service: {"url": c.url, "verified": c.verified}
        for c in result.scalars().all()
    }

    return {
        **runtime_settings.to_dict(),
        "connections": connections
    }


@router.post("/plex")
async def save_plex_connection(
    hostname: str = Form(...),
    port: int = Form(32400),
    auth_token: str = Form(...),
    ssl: bool = Form(False),
    name: Optional[str] = Form(None)
):
    """Save and test Plex connection."""
    ensure_server_can_be_configured("plex")

    client = PlexClient(hostname, port, auth_token, ssl=ssl)
    try:
        await client.test_connection()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Connection failed: {e}")

    await save_media_server_credentials("plex", {
        "plex_name": name or hostname,
        "plex_hostname": hostname,
        "plex_port": port,
        "plex_ssl": ssl,
        "plex_auth_token": auth_token
    })
    media_server_factory.uninitialize("plex")
    return {"success": True, **runtime_settings.to_dict()}


@router.post("/jellyfin")
async def save_jellyfin_connection(
    url: str = Form(...),
    api_key: str = Form(...),
    user_id: Optional[str] = Form(None)
):
    """Save and test Jellyfin connection."""
    ensure_server_can_be_configured("jellyfin")

    client = JellyfinClient(url, api_key, user_id=user_id)
    try:
        info = await client.test_connection()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Connection failed: {e}")

    await save_media_server_credentials("jellyfin", {
        "jellyfin_url": url,
        "jellyfin_api_key": api_key,
        "jellyfin_user_id": user_id,
        "jellyfin_server_name": info.get("ServerName")
    })
    media_server_factory.uninitialize("jellyfin")
    return {"success": True, **runtime_settings.to_dict()}


@router.post("/connections/{service}")
async def save_arr_connection(
    service: str,
    url: str = Form(...),
    api_key: str = Form(...),
    session: AsyncSession = Depends(get_session)
):
    """Save and test a Radarr or Sonarr connection."""
    if service not in ARR_SERVICES:
        raise HTTPException(status_code=404, detail=f"Unknown service: {service}")

    client = ArrClient(url, api_key)
    try:
        await client.test_connection()
        verified = True
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Connection failed: {e}")

    result = await session.execute(
        select(Connection).where(Connection.service == service)
    )
    conn = result.scalar_one_or_none()

    if conn:
        conn.url = url
        conn.api_key = api_key
        conn.verified = verified
    else:
        conn = Connection(
            service=service,
            url=url,
            api_key=api_key,
            verified=verified
        )
        session.add(conn)

    await session.commit()
    return {"success": True, "service": service}
