"""Web router aggregator for HTML pages."""

from fastapi import APIRouter

from memberhub.web import preferences

web_router = APIRouter(include_in_schema=False)

web_router.include_router(preferences.router)
