# radiowalk/services/stream_probe.py
import logging

import httpx

from radiowalk.core.settings import settings
from radiowalk.services.validation import validate_url

logger = logging.getLogger(__name__)

AUDIO_CONTENT_MARKERS = ("audio/", "application/ogg", "video/mp2t")


def is_audio_content_type(content_type: str) -> bool:
    # some radio streams are served as MPEG-TS
    return any(m in content_type for m in AUDIO_CONTENT_MARKERS)


class StreamProbe:
    def __init__(self) -> None:
        self.timeout = settings.STREAM_PROBE_TIMEOUT_SECONDS

    def _headers(self) -> dict:
        return {"User-Agent": settings.STREAM_PROBE_USER_AGENT}

    async def head(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.head(url, headers=self._headers())

    async def validate(self, url: str) -> dict:
        """
        HEAD the stream and report whether it answers with an audio type.
        Network failures are reported in the result, not raised.
        """
        validate_url(url, "url")
        try:
            r = await self.head(url)
        except httpx.HTTPError as e:
            logger.info("stream probe failed for %s: %s", url, e)
            return {
                "valid": False,
                "contentType": None,
                "isAudioStream": False,
                "status": None,
                "statusText": str(e) or e.__class__.__name__,
            }

        content_type = r.headers.get("content-type", "")
        return {
            "valid": r.is_success,
            "contentType": content_type,
            "isAudioStream": is_audio_content_type(content_type),
            "status": r.status_code,
            "statusText": r.reason_phrase,
        }
