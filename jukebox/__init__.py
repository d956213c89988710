"""
Venue Jukebox - fair round-robin video queue for venues.

Patrons at physical tables submit video links; the venue operator pulls
a continuous stream of "next video to play" in which no single table can
monopolize the shared playback output.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
