"""Photo proxy: /resources/maps/photo?photoRef=... so the Places API key never reaches clients."""
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from dinner_groups.api.deps import get_places_config
from dinner_groups.core.constants import PHOTO_CACHE_CONTROL
from dinner_groups.services.places.config import PlacesConfig
from dinner_groups.services.places.photos import open_photo_stream

router = APIRouter()
logger = logging.getLogger(__name__)

# Upstream headers passed through to the client
_PASSTHROUGH_HEADERS = ("content-type", "content-length", "content-encoding", "etag", "last-modified")


@router.get("/maps/photo")
async def maps_photo(
    photo_ref: str | None = Query(default=None, alias="photoRef"),
    config: PlacesConfig = Depends(get_places_config),
):
    if not photo_ref or not photo_ref.strip():
        raise HTTPException(status_code=400, detail="Photo reference is required")
    if not config.is_configured():
        raise HTTPException(status_code=500, detail="Google Places API key is required")
    try:
        client, upstream = await open_photo_stream(config, photo_ref.strip())
    except httpx.HTTPError as e:
        logger.warning("Places photo request failed: %s", e, exc_info=True)
        raise HTTPException(status_code=502, detail="Failed to fetch photo") from e

    async def close_upstream() -> None:
        await upstream.aclose()
        await client.aclose()

    if not upstream.is_success:
        await close_upstream()
        return Response("Failed to fetch photo", status_code=upstream.status_code)

    headers = {k: v for k, v in upstream.headers.items() if k.lower() in _PASSTHROUGH_HEADERS}
    headers["Cache-Control"] = PHOTO_CACHE_CONTROL
    return StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        headers=headers,
        background=BackgroundTask(close_upstream),
    )
