from fastapi import APIRouter, Depends, HTTPException, status

from shortlink_app.dependencies import get_url_service
from shortlink_app.schemas.url import AnalyticsResponse
from shortlink_app.services.url_service import ShortenerService

router = APIRouter(tags=["analytics"])


@router.get("/analytics/{alias:path}", response_model=AnalyticsResponse)
async def get_analytics(
    alias: str,
    url_service: ShortenerService = Depends(get_url_service),
):
    """Click analytics for an alias. Unknown aliases report zero clicks."""
    alias = alias.strip()
    if not alias:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="alias is required")

    return await url_service.build_analytics(alias)
