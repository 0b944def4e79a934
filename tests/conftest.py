"""Pytest configuration and fixtures for soundtouch_transport tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(status: int = 200, text_data: str = "") -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        text_data: Body returned from text()

    Returns:
        Configured AsyncMock response usable as an async context manager
    """
    response = AsyncMock()
    response.status = status
    response.text.return_value = text_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def request_bodies(session: MagicMock) -> list[tuple[str, str, str | None]]:
    """(method, url, decoded body) for every request made on a mock session."""
    calls = []
    for call in session.request.call_args_list:
        method, url = call.args[:2]
        data = call.kwargs.get("data")
        calls.append((method, url, data.decode("utf-8") if data is not None else None))
    return calls
