from fastapi import APIRouter, Depends, HTTPException, Request, status

from shortlink_app.config import Settings
from shortlink_app.dependencies import get_settings, get_url_service
from shortlink_app.exceptions import AliasExistsError, ValidationError
from shortlink_app.schemas.url import ShortenRequest, ShortenResponse
from shortlink_app.services.url_service import ShortenerService
from shortlink_app.utils import build_short_url

router = APIRouter(tags=["shorten"])


@router.post("/shorten", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    payload: ShortenRequest,
    request: Request,
    url_service: ShortenerService = Depends(get_url_service),
    settings: Settings = Depends(get_settings),
):
    """Create a short URL, with a custom alias if one is given"""
    try:
        alias = await url_service.create_short_url(payload)
    except AliasExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="alias already exists",
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ShortenResponse(
        alias=alias,
        short=build_short_url(alias, request, settings.base_url),
    )
