"""Root of the jukebox domain error hierarchy."""

from typing import ClassVar


class JukeboxError(Exception):
    """Base class for every error the jukebox raises on purpose.

    Attributes:
        transient: True for errors caused by a race with another caller,
            where repeating the same request later can succeed.
    """

    transient: ClassVar[bool] = False
