from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from shortlink_app.clicks.models import ClickMessage
from shortlink_app.clicks.recorder import ClickRecorder
from shortlink_app.dependencies import get_click_recorder, get_url_service
from shortlink_app.exceptions import URLNotFoundError
from shortlink_app.services.url_service import ShortenerService
from shortlink_app.utils import extract_client_ip

router = APIRouter(tags=["redirect"])


@router.get("/s/{alias:path}")
async def redirect_to_original_url(
    alias: str,
    request: Request,
    url_service: ShortenerService = Depends(get_url_service),
    recorder: ClickRecorder = Depends(get_click_recorder),
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the alias (cache first, store on a miss)
    2. Hand the click to the recorder (does not wait for the DB write)
    3. Redirect with 302
    """
    alias = alias.strip()
    if not alias:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="alias is required")

    try:
        url = await url_service.get_url(alias)
    except URLNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="url not found")

    recorder.submit(
        ClickMessage(
            alias=alias,
            url_id=url.id,
            user_agent=request.headers.get("user-agent", ""),
            ip_address=extract_client_ip(request),
        )
    )

    return RedirectResponse(url=url.original_url, status_code=status.HTTP_302_FOUND)
