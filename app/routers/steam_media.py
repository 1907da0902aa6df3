# app/routers/steam_media.py - Steam 商店資料與 CDN 媒體代理
import logging
from typing import Dict

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.schemas.steam import MediaInfo, StorefrontDetails
from app.services.container import ServiceContainer, get_container
from app.services.media_service import is_allowed_cdn_url, media_target_url

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_CACHE_CONTROL = "public, max-age=86400"
_UA = {"User-Agent": "Mozilla/5.0"}


def _check_appid(appid: str) -> str:
    appid = (appid or "").strip()
    if not appid.isdigit():
        raise HTTPException(status_code=400, detail={"kind": "BadRequest", "desc": "Missing or invalid appid"})
    return appid


def _check_cdn_url(url: str) -> str:
    if not is_allowed_cdn_url(url):
        raise HTTPException(status_code=403, detail={"kind": "Forbidden", "desc": "Only Steam CDN URLs are allowed"})
    return url


async def _passthrough(container: ServiceContainer, url: str) -> Response:
    """一次讀完上游內容後轉送（圖片用）；上游錯誤碼原樣回傳"""
    try:
        r = await container.http.get(url, headers=_UA, timeout=container.settings.PROVIDER_TIMEOUT)
    except httpx.HTTPError as e:
        logger.error(f"Error proxying Steam media {url}: {e}")
        raise HTTPException(status_code=502, detail={"kind": "UpstreamHTTP", "desc": "Failed to fetch Steam media"})

    if not r.is_success:
        return Response(status_code=r.status_code)

    return Response(
        content=r.content,
        media_type=r.headers.get("content-type", "application/octet-stream"),
        headers={"Cache-Control": r.headers.get("cache-control", DEFAULT_CACHE_CONTROL)},
    )


@router.get("/appdetails", response_model=StorefrontDetails)
async def appdetails(appid: str = Query(...), container: ServiceContainer = Depends(get_container)):
    appid = _check_appid(appid)
    details = await container.storefront.resolve_storefront_details(appid)
    if details is None:
        raise HTTPException(status_code=404, detail={"kind": "NotFound", "desc": f"Steam app {appid} not found"})
    return details


@router.get("/media", response_model=MediaInfo)
async def media_info(appid: str = Query(...), container: ServiceContainer = Depends(get_container)):
    return await container.media.request_media(_check_appid(appid))


@router.get("/image")
async def image_proxy(
    appid: str = Query(...),
    media: str = Query(...),
    variant: str = Query("header"),
    container: ServiceContainer = Depends(get_container),
):
    target = media_target_url(_check_appid(appid), media, variant)
    if target is None:
        raise HTTPException(status_code=400, detail={"kind": "BadRequest", "desc": "Unsupported media type"})
    return await _passthrough(container, target)


@router.get("/proxy")
async def cdn_proxy(url: str = Query(...), container: ServiceContainer = Depends(get_container)):
    return await _passthrough(container, _check_cdn_url(url))


@router.get("/video")
async def video_proxy(request: Request, url: str = Query(...), container: ServiceContainer = Depends(get_container)):
    """
    影片串流代理：轉送 Range 標頭，並回傳上游的 200/206 與
    Content-Range / Content-Length，讓瀏覽器可以拖曳播放。
    """
    _check_cdn_url(url)

    headers: Dict[str, str] = dict(_UA)
    range_header = request.headers.get("range")
    if range_header:
        headers["Range"] = range_header

    upstream_req = container.http.build_request("GET", url, headers=headers)
    try:
        upstream = await container.http.send(upstream_req, stream=True)
    except httpx.HTTPError as e:
        logger.error(f"Error proxying Steam video {url}: {e}")
        raise HTTPException(status_code=502, detail={"kind": "UpstreamHTTP", "desc": "Failed to fetch video"})

    if not upstream.is_success:
        await upstream.aclose()
        return Response(status_code=upstream.status_code)

    out_headers = {
        "Cache-Control": upstream.headers.get("cache-control", DEFAULT_CACHE_CONTROL),
        "Accept-Ranges": "bytes",
    }
    for name in ("content-range", "content-length"):
        value = upstream.headers.get(name)
        if value:
            out_headers[name.title()] = value

    return StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "video/webm"),
        headers=out_headers,
        background=BackgroundTask(upstream.aclose),
    )
