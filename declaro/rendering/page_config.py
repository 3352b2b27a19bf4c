"""
Page configuration.

Page classes and services produce page configs: mappings describing
what a page shows (``type``, ``components``, ``meta``, ...). Plain
mappings are wrapped in PageConfig; any other object is assumed to be
a host-supplied config and left as-is.
"""
from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from typing import Any


class PageConfig(Mapping[str, Any]):
    """
    Read-only view over a page config mapping.

    Example:
        config = PageConfig({"type": "index", "components": {"table": {...}}})
        config.page_type         # "index"
        config.component_names   # ["table"]
        config.dig("components", "table", "title")
    """

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PageConfig({self._data!r})"

    def __deepcopy__(self, memo: dict[int, Any]) -> "PageConfig":
        return PageConfig(copy.deepcopy(self._data, memo))

    @property
    def components(self) -> dict[str, Any]:
        components = self._data.get("components")
        return dict(components) if isinstance(components, Mapping) else {}

    @property
    def meta(self) -> dict[str, Any]:
        meta = self._data.get("meta")
        return dict(meta) if isinstance(meta, Mapping) else {}

    @property
    def page_type(self) -> str | None:
        value = self._data.get("type")
        return None if value is None else str(getattr(value, "value", value))

    @property
    def klass(self) -> Any:
        """Component class declared by the config, if any."""
        return self._data.get("klass") or self._data.get("component")

    @property
    def component_names(self) -> list[str]:
        return list(self.components)

    def dig(self, *keys: str) -> Any:
        """Nested lookup; None when any level is missing."""
        value: Any = self._data
        for key in keys:
            if not isinstance(value, Mapping):
                return None
            value = value.get(key)
        return value

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


def normalize_page_config(value: Any) -> Any:
    """Wrap plain mappings in PageConfig; leave None and config objects untouched."""
    if value is None or isinstance(value, PageConfig):
        return value
    if isinstance(value, Mapping):
        return PageConfig(value)
    return value
