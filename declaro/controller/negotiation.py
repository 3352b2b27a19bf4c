"""
Response format negotiation.

Order:
1. An explicit ``format`` parameter (query string or ``.{format}`` path suffix)
2. The ``Accept`` header, in quality order
3. HTML

HTML requests carrying a ``Turbo-Frame`` header become TURBO_FRAME.
With Turbo disabled in settings, neither Turbo format is produced.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from declaro.actions.configuration import ResponseFormat
from declaro.config import get_settings
from declaro.turbo.streams import TURBO_STREAM_MEDIA_TYPE

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)

TURBO_FRAME_HEADER = "turbo-frame"

MEDIA_TYPE_FORMATS: dict[str, ResponseFormat] = {
    TURBO_STREAM_MEDIA_TYPE: ResponseFormat.TURBO_STREAM,
    "text/html": ResponseFormat.HTML,
    "application/xhtml+xml": ResponseFormat.HTML,
    "application/json": ResponseFormat.JSON,
    "text/json": ResponseFormat.JSON,
    "text/csv": ResponseFormat.CSV,
    "application/xml": ResponseFormat.XML,
    "text/xml": ResponseFormat.XML,
    "*/*": ResponseFormat.HTML,
}

FORMAT_NAMES: dict[str, ResponseFormat] = {
    "html": ResponseFormat.HTML,
    "json": ResponseFormat.JSON,
    "csv": ResponseFormat.CSV,
    "xml": ResponseFormat.XML,
    "turbo_stream": ResponseFormat.TURBO_STREAM,
}


def parse_accept(header: str | None) -> list[str]:
    """Media types from an Accept header, highest quality first."""
    if not header:
        return []

    entries: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        media_type, *params = [p.strip() for p in part.split(";")]
        if not media_type:
            continue
        quality = 1.0
        for param in params:
            key, _, value = param.partition("=")
            if key.strip() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            entries.append((-quality, index, media_type.lower()))

    return [media_type for _, _, media_type in sorted(entries)]


def format_from_accept(header: str | None) -> ResponseFormat | None:
    for media_type in parse_accept(header):
        fmt = MEDIA_TYPE_FORMATS.get(media_type)
        if fmt is not None:
            return fmt
    return None


def negotiate_format(
    request: "Request | None",
    params: Mapping[str, Any] | None = None,
) -> ResponseFormat:
    """Pick the response format for a request."""
    turbo_enabled = get_settings().turbo.enabled

    explicit = (params or {}).get("format")
    if explicit is None and request is not None:
        explicit = request.path_params.get("format")

    fmt: ResponseFormat | None = None
    if explicit is not None:
        fmt = FORMAT_NAMES.get(str(explicit).lower())
        if fmt is None:
            logger.debug(f"Ignoring unknown format parameter: {explicit!r}")

    if fmt is None and request is not None:
        fmt = format_from_accept(request.headers.get("accept"))

    fmt = fmt or ResponseFormat.HTML

    if fmt is ResponseFormat.TURBO_STREAM and not turbo_enabled:
        fmt = ResponseFormat.HTML

    if (
        fmt is ResponseFormat.HTML
        and turbo_enabled
        and request is not None
        and request.headers.get(TURBO_FRAME_HEADER)
    ):
        fmt = ResponseFormat.TURBO_FRAME

    return fmt
