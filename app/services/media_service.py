# app/services/media_service.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from app.schemas.steam import MediaInfo
from app.services.storefront_client import StorefrontClient

logger = logging.getLogger(__name__)

STEAM_CDN_URL = "https://cdn.akamai.steamstatic.com/steam/apps"
MAX_SCREENSHOTS = 8

ALLOWED_CDN_HOSTS = frozenset({
    "cdn.akamai.steamstatic.com",
    "cdn.cloudflare.steamstatic.com",
    "shared.akamai.steamstatic.com",
    "shared.cloudflare.steamstatic.com",
    "video.akamai.steamstatic.com",
    "video.cloudflare.steamstatic.com",
})

IMAGE_VARIANTS = {
    "header": "header.jpg",
    "capsule": "capsule_616x353.jpg",
    "library": "library_600x900.jpg",
}


def cover_image_url(steam_app_id: str) -> str:
    return f"{STEAM_CDN_URL}/{steam_app_id}/header.jpg"


def is_allowed_cdn_url(url: str) -> bool:
    """只允許 https 的 Steam CDN，避免變成開放代理"""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == "https" and (parsed.hostname or "").lower() in ALLOWED_CDN_HOSTS


def media_target_url(steam_app_id: str, media: str, variant: Optional[str] = None) -> Optional[str]:
    """依 media 種類組出 CDN URL；不支援的種類回傳 None"""
    if media == "image":
        filename = IMAGE_VARIANTS.get(variant or "header", IMAGE_VARIANTS["header"])
        return f"{STEAM_CDN_URL}/{steam_app_id}/{filename}"
    if media == "microtrailer":
        return f"{STEAM_CDN_URL}/{steam_app_id}/microtrailer.webm"
    if media == "trailer-mp4":
        return f"{STEAM_CDN_URL}/{steam_app_id}/microtrailer.mp4"
    return None


def pick_trailer(movies: List[Dict[str, Any]]) -> Optional[str]:
    if not movies:
        return None
    first = movies[0] if isinstance(movies[0], dict) else {}
    for fmt in ("webm", "mp4"):
        sources = first.get(fmt) or {}
        if isinstance(sources, dict):
            url = sources.get("max") or sources.get("480")
            if url:
                return url
    return None


def collect_screenshots(screenshots: List[Dict[str, Any]], limit: int = MAX_SCREENSHOTS) -> List[str]:
    seen: List[str] = []
    for shot in screenshots:
        if not isinstance(shot, dict):
            continue
        url = shot.get("path_full")
        if isinstance(url, str) and url and url not in seen:
            seen.append(url)
        if len(seen) >= limit:
            break
    return seen


class MediaService:
    def __init__(self, storefront: StorefrontClient) -> None:
        self.storefront = storefront

    async def request_media(self, steam_app_id: str) -> MediaInfo:
        """預告片與截圖；失敗時回傳空結果"""
        try:
            data = await self.storefront.fetch_app_data(steam_app_id)
        except Exception as e:
            logger.warning(f"Media lookup failed for app {steam_app_id}: {e}")
            return MediaInfo()

        if not data:
            return MediaInfo()

        movies = data.get("movies") if isinstance(data.get("movies"), list) else []
        screenshots = data.get("screenshots") if isinstance(data.get("screenshots"), list) else []
        return MediaInfo(
            trailer_url=pick_trailer(movies),
            screenshot_urls=collect_screenshots(screenshots),
        )
