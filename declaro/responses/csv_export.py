"""
CSV export.

Example:
    generate_csv([{"id": 1, "name": "Ada"}])
    # "Id,Name\\n1,Ada\\n"

    send_csv(users, filename="users.csv", columns=["id", "email"],
             headers={"email": "E-mail"})
"""
from __future__ import annotations

import csv
import dataclasses
import io
import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterable, Sequence

from fastapi.encoders import jsonable_encoder
from starlette.responses import Response

CSV_MEDIA_TYPE = "text/csv"


def humanize(column: str) -> str:
    """``first_name`` -> ``First name``."""
    text = str(column).replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def detect_columns(record: Any) -> list[str]:
    """Columns of a sample record: mapping keys, model fields or public attributes."""
    if record is None:
        return []
    if isinstance(record, Mapping):
        return [str(k) for k in record.keys()]

    model_fields = getattr(type(record), "model_fields", None)
    if isinstance(model_fields, Mapping):
        return list(model_fields)

    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return [f.name for f in dataclasses.fields(record)]

    to_dict = getattr(record, "to_dict", None)
    if callable(to_dict):
        data = to_dict()
        if isinstance(data, Mapping):
            return [str(k) for k in data.keys()]

    try:
        attrs = vars(record)
    except TypeError:
        return []
    return [k for k in attrs if not k.startswith("_")]


def extract_value(record: Any, column: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(column)
    return getattr(record, column, None)


def format_value(value: Any) -> Any:
    """Format a cell value; datetimes are checked before dates."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(jsonable_encoder(dict(value)))
    return value


def generate_csv(
    collection: Iterable[Any] | None,
    columns: Sequence[str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> str:
    """
    Render records as CSV text.

    Args:
        collection: Mappings or objects
        columns: Columns to export (default: detected from the first record)
        headers: Header overrides by column (default: humanized column name)

    Returns:
        The CSV text; empty for an empty collection
    """
    records = list(collection or [])
    if not records:
        return ""

    columns = list(columns) if columns else detect_columns(records[0])
    headers = dict(headers or {})

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([headers.get(col) or humanize(col) for col in columns])
    for record in records:
        writer.writerow([format_value(extract_value(record, col)) for col in columns])
    return buffer.getvalue()


def send_csv(
    collection: Iterable[Any] | None,
    filename: str = "export.csv",
    columns: Sequence[str] | None = None,
    headers: Mapping[str, str] | None = None,
    status_code: int = 200,
) -> Response:
    """CSV download response."""
    safe_name = filename.replace('"', "")
    return Response(
        content=generate_csv(collection, columns=columns, headers=headers),
        status_code=status_code,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{safe_name}"'},
    )
