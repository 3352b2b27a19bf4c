"""
Rendering collaborators: components, page configs and templates.
"""

from .component import (
    Component,
    instantiate_component,
    render_component_collection,
    render_component_to_string,
)
from .page_config import PageConfig, normalize_page_config
from .resolver import camelize, find_page_component
from .templates import (
    TemplateNotFoundError,
    TemplateRenderer,
    get_template_renderer,
    reset_template_renderer,
)

__all__ = [
    "Component",
    "PageConfig",
    "TemplateNotFoundError",
    "TemplateRenderer",
    "camelize",
    "find_page_component",
    "get_template_renderer",
    "instantiate_component",
    "normalize_page_config",
    "render_component_collection",
    "render_component_to_string",
    "reset_template_renderer",
]
