"""
Hotwire Turbo support: the stream builder and stream rendering.
"""

from .builder import CONTENT_ACTIONS, STREAM_ACTIONS, StreamOperation, TurboStreamBuilder
from .streams import (
    TURBO_STREAM_MEDIA_TYPE,
    TurboStreamResponse,
    dom_id,
    render_operations,
    resolve_target,
    turbo_stream_tag,
)

__all__ = [
    "CONTENT_ACTIONS",
    "STREAM_ACTIONS",
    "StreamOperation",
    "TURBO_STREAM_MEDIA_TYPE",
    "TurboStreamBuilder",
    "TurboStreamResponse",
    "dom_id",
    "render_operations",
    "resolve_target",
    "turbo_stream_tag",
]
