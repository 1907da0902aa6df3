# app/schemas/steam.py
from typing import List, Optional

from pydantic import BaseModel, Field


class StorefrontDetails(BaseModel):
    steam_app_id: str
    title: str
    description: str = ""
    developer: str = "Unknown"
    price: str = "N/A"


class MediaInfo(BaseModel):
    trailer_url: Optional[str] = None
    screenshot_urls: List[str] = Field(default_factory=list)


class DealInfo(BaseModel):
    cheapest_price: str
    deal_url: str
    # True 代表連結是依標題猜出來的，未經 gg.deals 驗證
    is_estimate: bool = True
