"""Client error types for SoundTouch device interactions."""

from __future__ import annotations


class SoundTouchClientError(Exception):
    """Base error for SoundTouch client failures."""


class SoundTouchTransportError(SoundTouchClientError):
    """Network-level failure; callers may retry."""


class SoundTouchTimeout(SoundTouchTransportError):
    """Timeout while communicating with the device."""


class SoundTouchConnectionError(SoundTouchTransportError):
    """Network connection to the device failed."""


class SoundTouchHandshakeError(SoundTouchConnectionError):
    """WebSocket handshake failed."""


class SoundTouchResponseError(SoundTouchClientError):
    """Non-2xx HTTP response from the device."""

    def __init__(self, status: int, message: str, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class SoundTouchDecodeError(SoundTouchClientError):
    """XML payload was malformed or missing expected structure."""


class SoundTouchDiscoveryError(SoundTouchClientError):
    """mDNS browse session failed."""


class SoundTouchConfigError(SoundTouchClientError):
    """Configuration is missing or invalid."""
