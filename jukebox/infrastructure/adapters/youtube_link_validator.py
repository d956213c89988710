"""YouTube link validator.

Accepts video links from the configured YouTube hosts and reduces them
to the 11-character video id, which is stored as the item's content id.

Accepted shapes:
    https://www.youtube.com/watch?v=<id>[&...]
    https://youtu.be/<id>[?...]
    https://www.youtube.com/shorts/<id>
    https://www.youtube.com/embed/<id>
    https://www.youtube.com/live/<id>

A missing scheme is treated as https. Only http and https are accepted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import parse_qs, urlparse

from jukebox.application.ports.payload_validator import PayloadValidatorProtocol
from jukebox.config.scheduler_config import DEFAULT_ALLOWED_VIDEO_HOSTS
from jukebox.domain.errors.queue import InvalidPayloadError

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")
MAX_LINK_LENGTH = 2048

_SHORT_LINK_HOST = "youtu.be"
_PATH_PREFIXES: tuple[str, ...] = ("/shorts/", "/embed/", "/live/", "/v/")


class YouTubeLinkValidator(PayloadValidatorProtocol):
    """Payload validator for YouTube video links.

    Attributes:
        _allowed_hosts: Lower-cased hosts links may point at.
    """

    def __init__(self, allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_VIDEO_HOSTS) -> None:
        self._allowed_hosts = frozenset(h.lower() for h in allowed_hosts)

    def validate(self, payload: str) -> str:
        """Validate a link and extract its video id.

        Args:
            payload: The submitted link.

        Returns:
            The YouTube video id.

        Raises:
            InvalidPayloadError: If the link is not an accepted video link.
        """
        link = payload.strip() if payload else ""
        if not link:
            raise InvalidPayloadError(payload, "link is empty")
        if len(link) > MAX_LINK_LENGTH:
            raise InvalidPayloadError(
                payload, f"link exceeds {MAX_LINK_LENGTH} characters"
            )

        if "://" not in link:
            link = f"https://{link}"
        parsed = urlparse(link)

        if parsed.scheme not in ("http", "https"):
            raise InvalidPayloadError(payload, f"unsupported scheme {parsed.scheme!r}")

        host = (parsed.hostname or "").lower()
        if host not in self._allowed_hosts:
            raise InvalidPayloadError(payload, f"host {host!r} is not an accepted provider")

        video_id = self._extract_video_id(host, parsed.path, parsed.query)
        if video_id is None or not VIDEO_ID_PATTERN.match(video_id):
            raise InvalidPayloadError(payload, "link does not reference a video")
        return video_id

    @staticmethod
    def _extract_video_id(host: str, path: str, query: str) -> str | None:
        if host == _SHORT_LINK_HOST:
            return path.strip("/").split("/")[0] or None

        if path.rstrip("/") == "/watch":
            values = parse_qs(query).get("v")
            return values[0] if values else None

        for prefix in _PATH_PREFIXES:
            if path.startswith(prefix):
                return path[len(prefix) :].split("/")[0] or None
        return None
