"""Kida environment setup for server-rendered views.

Creates a kida Environment from movico's AppConfig. The environment is
created once, the first time a template view is registered, and shared
by every render after that.
"""

from typing import Any

from kida import Environment, FileSystemLoader

from movico.config import AppConfig


def create_environment(config: AppConfig) -> Environment:
    """Create a kida Environment rooted at ``config.view_dir``.

    Templates are reloaded from disk on change in development only.
    """
    return Environment(
        loader=FileSystemLoader(str(config.view_dir)),
        autoescape=True,
        auto_reload=config.debug,
    )


def render_template(env: Environment, name: str, context: dict[str, Any]) -> str:
    """Render a full template to string."""
    template = env.get_template(name)
    return template.render(context)
