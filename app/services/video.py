import logging
import re
from typing import Optional

import httpx
from fastapi import HTTPException, status

from app.core.config import settings
from app.core.constants import VideoSourceTypeEnum

logger = logging.getLogger(__name__)

YOUTUBE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")
YOUTUBE_URL = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/|v/|live/)|youtu\.be/)([A-Za-z0-9_-]{11})"
)
VIMEO_ID = re.compile(r"^\d+$")
VIMEO_URL = re.compile(r"vimeo\.com/(?:video/|channels/[\w-]+/|groups/[\w-]+/videos/)?(\d+)")
ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def extract_youtube_id(value: str) -> Optional[str]:
    value = (value or "").strip()
    if YOUTUBE_ID.match(value):
        return value
    match = YOUTUBE_URL.search(value)
    return match.group(1) if match else None


def extract_vimeo_id(value: str) -> Optional[str]:
    value = (value or "").strip()
    if VIMEO_ID.match(value):
        return value
    match = VIMEO_URL.search(value)
    return match.group(1) if match else None


def parse_iso8601_duration(value: str) -> Optional[int]:
    """'PT1H2M3S' -> 3723. Returns None for anything that is not a duration."""
    match = ISO_DURATION.match(value or "")
    if not match or value in ("P", "PT"):
        return None
    parts = {key: int(number) for key, number in match.groupdict(default="0").items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


class VideoMetadataService:
    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.api_url = api_url or settings.YOUTUBE_API_URL
        self.transport = transport

    @property
    def can_lookup_youtube(self) -> bool:
        return bool(self.api_key)

    def extract_video_id(self, source_type: VideoSourceTypeEnum, value: str) -> Optional[str]:
        if source_type == VideoSourceTypeEnum.YOUTUBE:
            return extract_youtube_id(value)
        if source_type == VideoSourceTypeEnum.VIMEO:
            return extract_vimeo_id(value)
        return None

    async def get_youtube_duration(self, video_id: str) -> int:
        params = {"id": video_id, "part": "contentDetails", "key": self.api_key}
        async with httpx.AsyncClient(timeout=settings.VIDEO_LOOKUP_TIMEOUT_SECONDS, transport=self.transport) as client:
            try:
                response = await client.get(self.api_url, params=params)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"YouTube lookup for {video_id} failed: {e}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Could not fetch video information from YouTube."
                )

        items = response.json().get("items") or []
        if not items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"YouTube video {video_id} was not found."
            )
        duration = parse_iso8601_duration(items[0].get("contentDetails", {}).get("duration", ""))
        if duration is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Could not read the YouTube video duration."
            )
        return duration

video_service = VideoMetadataService()
