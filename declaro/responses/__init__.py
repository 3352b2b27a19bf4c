"""
Response builders: the JSON envelope, CSV and XML bodies, pagination.
"""

from .csv_export import generate_csv, humanize, send_csv
from .envelope import (
    build_json_error_response,
    build_json_response,
    build_response,
    encode,
    error_response,
    format_error,
    json_response,
    success_response,
)
from .pagination import Page, paginate, pagination_links, pagination_meta
from .serializer import Serializer, serialize
from .xml_export import build_xml_error, to_xml, xml_response

__all__ = [
    "Page",
    "Serializer",
    "build_json_error_response",
    "build_json_response",
    "build_response",
    "build_xml_error",
    "encode",
    "error_response",
    "format_error",
    "generate_csv",
    "humanize",
    "json_response",
    "paginate",
    "pagination_links",
    "pagination_meta",
    "send_csv",
    "serialize",
    "success_response",
    "to_xml",
    "xml_response",
]
