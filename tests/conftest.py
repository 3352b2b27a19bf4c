"""
Pytest configuration and fixtures for Declaro tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from declaro.actions import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from declaro.config import reset_settings  # noqa: E402
from declaro.rendering import reset_template_renderer  # noqa: E402


@pytest.fixture(autouse=True)
def clean_globals():
    """Every test starts from default settings and a fresh template renderer."""
    reset_settings()
    reset_template_renderer()
    yield
    reset_settings()
    reset_template_renderer()


@pytest.fixture
def renderer():
    """The global template renderer with a few user templates and a layout."""
    from declaro.rendering import get_template_renderer

    renderer = get_template_renderer()
    renderer.register("layouts/application", lambda ctx: f"<main>{ctx['content']}</main>")
    renderer.register("users/index", lambda ctx: "<ul>users</ul>")
    renderer.register("users/show", lambda ctx: f"<p>{ctx['resource']}</p>")
    renderer.register("users/new", lambda ctx: "<form>new</form>")
    renderer.register("users/create", lambda ctx: "<form>create</form>")
    renderer.register("users/_row", lambda ctx: f"<li>{ctx.get('name', '')}</li>")
    return renderer


@pytest.fixture
def sample_users():
    """Sample records for collection tests."""
    return [
        {"id": 1, "name": "Ada", "email": "ada@example.com"},
        {"id": 2, "name": "Grace", "email": "grace@example.com"},
        {"id": 3, "name": "Linus", "email": "linus@example.com"},
    ]
