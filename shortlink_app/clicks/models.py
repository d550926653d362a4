from typing import Optional

from pydantic import BaseModel, Field


class ClickMessage(BaseModel):
    """
    A click handed from the redirect handler to the click workers.

    `url_id` is None when the redirect was resolved from cache.
    """
    alias: str = Field(..., description="Alias that was visited")
    url_id: Optional[int] = Field(None, description="ShortURL id, if known")
    user_agent: str = Field("", description="Visitor user agent")
    ip_address: str = Field("", description="Visitor IP address")
