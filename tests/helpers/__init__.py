"""Test helpers for jukebox tests.

Helpers:
    VIDEO_IDS: Valid YouTube video ids
    video_link: Watch link for one of VIDEO_IDS
    make_item: QueueItem factory with sensible defaults

Usage:
    from tests.helpers import make_item, video_link
"""

from tests.helpers.factories import VIDEO_IDS, make_item, video_link

__all__ = ["VIDEO_IDS", "make_item", "video_link"]
