"""Shared Jinja2 templates configuration."""

from pathlib import Path

from jinja2 import ChoiceLoader, FileSystemLoader, PrefixLoader
from starlette.templating import Jinja2Templates

from memberhub.config import settings
from memberhub.services.i18n_service import get_i18n_service

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Initialize templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Themes are reachable as "themes/<name>/index.html" from every template
templates.env.loader = ChoiceLoader(
    [
        FileSystemLoader(str(TEMPLATES_DIR)),
        PrefixLoader({"themes": FileSystemLoader(str(settings.themes_dir))}),
    ]
)

# Setup template globals
i18n = get_i18n_service()


def t(key: str, lang: str = "en", **kwargs) -> str:
    """Translation function for templates."""
    return i18n.t(key, lang, **kwargs)


# Add globals to templates
templates.env.globals["settings"] = settings
templates.env.globals["t"] = t
templates.env.globals["app_name"] = settings.app_name
