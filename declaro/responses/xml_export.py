"""
XML responses.

Only the default error body is built in; success XML needs an explicit
handler, for which ``to_xml`` serializes plain data:

    <error>
      <message>Validation failed</message>
      <errors><email>can't be blank</email></errors>
    </error>
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import Response

XML_MEDIA_TYPE = "application/xml"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

_INVALID_TAG_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _tag(name: Any) -> str:
    tag = _INVALID_TAG_CHARS.sub("_", str(name)) or "item"
    if not (tag[0].isalpha() or tag[0] == "_"):
        tag = f"_{tag}"
    return tag


def _append(parent: ET.Element, name: Any, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            _append(parent, name, item)
        return

    element = ET.SubElement(parent, _tag(name))
    if isinstance(value, Mapping):
        for key, child in value.items():
            _append(element, key, child)
    elif value is not None:
        element.text = str(value)


def to_xml(data: Any, root: str = "response") -> str:
    """Serialize mappings, lists and scalars into an XML document string."""
    if hasattr(data, "to_dict") and callable(data.to_dict):
        data = data.to_dict()
    data = jsonable_encoder(dict(data) if isinstance(data, Mapping) else data)

    element = ET.Element(_tag(root))
    if isinstance(data, Mapping):
        for key, value in data.items():
            _append(element, key, value)
    elif isinstance(data, list):
        for item in data:
            _append(element, "item", item)
    elif data is not None:
        element.text = str(data)
    return XML_DECLARATION + ET.tostring(element, encoding="unicode")


def build_xml_error(message: str, errors: Any = None) -> str:
    """The default XML error document."""
    body: dict[str, Any] = {"message": message}
    if errors:
        if hasattr(errors, "to_dict") and callable(errors.to_dict):
            errors = errors.to_dict()
        body["errors"] = errors
    return to_xml(body, root="error")


def xml_response(content: str, status_code: int = 200) -> Response:
    return Response(content=content, status_code=status_code, media_type=XML_MEDIA_TYPE)
