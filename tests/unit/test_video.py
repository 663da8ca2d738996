import httpx
import pytest
from fastapi import HTTPException

from app.core.constants import VideoSourceTypeEnum
from app.services.video import (
    VideoMetadataService, extract_vimeo_id, extract_youtube_id, parse_iso8601_duration,
)


@pytest.mark.parametrize("value", [
    "dQw4w9WgXcQ",
    "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
    "https://youtu.be/dQw4w9WgXcQ",
    "https://www.youtube.com/embed/dQw4w9WgXcQ",
    "https://youtube.com/shorts/dQw4w9WgXcQ",
])
def test_extract_youtube_id(value):
    assert extract_youtube_id(value) == "dQw4w9WgXcQ"


@pytest.mark.parametrize("value", ["", "not a video", "https://example.com/watch?v=dQw4w9WgXcQ"])
def test_extract_youtube_id_rejects_garbage(value):
    assert extract_youtube_id(value) is None


@pytest.mark.parametrize("value", ["76979871", "https://vimeo.com/76979871", "https://player.vimeo.com/video/76979871"])
def test_extract_vimeo_id(value):
    assert extract_vimeo_id(value) == "76979871"


def test_extract_video_id_has_no_id_for_uploads():
    service = VideoMetadataService(api_key="")
    assert service.extract_video_id(VideoSourceTypeEnum.CLOUDINARY, "anything") is None


@pytest.mark.parametrize("value,expected", [
    ("PT1H2M3S", 3723),
    ("PT4M13S", 253),
    ("PT45S", 45),
    ("P1DT1S", 86401),
    ("PT", None),
    ("", None),
    ("1:00", None),
])
def test_parse_iso8601_duration(value, expected):
    assert parse_iso8601_duration(value) == expected


def _service(handler) -> VideoMetadataService:
    return VideoMetadataService(api_key="key", api_url="https://yt.test/videos", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_youtube_duration_lookup():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"items": [{"contentDetails": {"duration": "PT3M32S"}}]})

    assert await _service(handler).get_youtube_duration("dQw4w9WgXcQ") == 212
    assert seen["id"] == "dQw4w9WgXcQ"
    assert seen["part"] == "contentDetails"


@pytest.mark.asyncio
async def test_youtube_unknown_video_is_bad_request():
    service = _service(lambda request: httpx.Response(200, json={"items": []}))
    with pytest.raises(HTTPException) as exc:
        await service.get_youtube_duration("dQw4w9WgXcQ")
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_youtube_api_failure_is_bad_request():
    service = _service(lambda request: httpx.Response(503))
    with pytest.raises(HTTPException) as exc:
        await service.get_youtube_duration("dQw4w9WgXcQ")
    assert exc.value.detail == "Could not fetch video information from YouTube."


def test_lookup_disabled_without_key():
    assert VideoMetadataService(api_key="").can_lookup_youtube is False
