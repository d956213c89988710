"""Payload validator port.

Submitted payloads are opaque to the scheduler. A validator decides
whether a payload is acceptable and reduces it to a normalized content
identifier stored alongside it.
"""

from __future__ import annotations

from typing import Protocol


class PayloadValidatorProtocol(Protocol):
    """Protocol for payload validation."""

    def validate(self, payload: str) -> str:
        """Validate a payload.

        Args:
            payload: The raw submitted payload (e.g. a video link).

        Returns:
            The normalized content identifier.

        Raises:
            InvalidPayloadError: If the payload is rejected.
        """
        ...
