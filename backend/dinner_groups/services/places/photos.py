"""
Photo proxy: fetch a Places photo by reference and stream it back.
The API key stays server-side; clients only ever see /resources/maps/photo?photoRef=...
"""
import logging

import httpx

from dinner_groups.core.constants import PHOTO_MAX_WIDTH
from dinner_groups.services.places.config import PlacesConfig

logger = logging.getLogger(__name__)


def build_photo_request(client: httpx.AsyncClient, config: PlacesConfig, photo_ref: str) -> httpx.Request:
    return client.build_request(
        "GET",
        f"{config.base_url}/photo",
        params={"maxwidth": str(PHOTO_MAX_WIDTH), "photoreference": photo_ref, "key": config.api_key},
    )


async def open_photo_stream(
    config: PlacesConfig,
    photo_ref: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[httpx.AsyncClient, httpx.Response]:
    """
    Send the photo request with a streamed body; Places answers with a redirect to the image host.
    Caller owns both returned objects and must close the response, then the client.
    """
    client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True, transport=transport)
    try:
        response = await client.send(build_photo_request(client, config, photo_ref), stream=True)
    except httpx.HTTPError:
        await client.aclose()
        raise
    if not response.is_success:
        logger.warning("Places photo fetch failed: status=%s", response.status_code)
    return client, response
