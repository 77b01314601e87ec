"""Image proxy endpoint."""
import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from api.dependencies import get_http_client, get_request_settings
from core.config import Settings
from core.errors import AppError
from services.image_proxy import fetch_image

router = APIRouter(prefix="/api", tags=["image-proxy"])


@router.get("/image-proxy", response_class=Response)
async def image_proxy(
    url: str | None = None,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_request_settings),
) -> Response:
    """Fetch a remote image server-side so the browser avoids CORS / mixed content."""
    try:
        image = await fetch_image(client, settings, url)
    except AppError as e:
        # Errors are plain text on this route; the caller is an <img> tag.
        return PlainTextResponse(e.message, status_code=e.status_code)
    return Response(content=image.content, media_type=image.content_type)
