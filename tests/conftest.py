"""
Shared pytest fixtures for MemberHub tests.

Store-level tests run against a SQLite database in a temporary directory;
every test drives its async code with ``asyncio.run``.
"""

import os

# Settings are read at import time of memberhub.config
os.environ.setdefault("APP_SECRET_KEY", "memberhub-test-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./memberhub-test.db")
os.environ.setdefault("APP_ENV", "development")

import asyncio
import uuid
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.requests import Request

from memberhub.config import settings
from memberhub.models import Base, User
from memberhub.services.organization_service import OrganizationService


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def session_factory(tmp_path: Path):
    """Provide a session factory bound to a fresh SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'memberhub.db'}",
        poolclass=NullPool,
    )

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def admin_user_id(session_factory) -> uuid.UUID:
    """Create an active user and return its id."""

    async def create():
        async with session_factory() as db:
            user = User(
                email="admin@example.org",
                password_hash="not-a-real-hash",
                first_name="Ada",
                last_name="Admin",
                is_active=True,
                language="en",
            )
            db.add(user)
            await db.commit()
            return user.id

    return asyncio.run(create())


@pytest.fixture
def organization_id(session_factory, admin_user_id) -> uuid.UUID:
    """Create an organization administrated by the admin user."""

    async def create():
        async with session_factory() as db:
            user = await db.get(User, admin_user_id)
            return await OrganizationService(db).create(
                short_name="DEMO",
                long_name="Demo Association",
                admin_email="admin@example.org",
                system_language="en",
                created_by=user,
            )

    return asyncio.run(create())


# -----------------------------------------------------------------------------
# Configuration Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def template_config(tmp_path: Path):
    """Settings whose data folder holds a few mail and greeting card templates."""
    data_dir = tmp_path / "data"
    mail_dir = data_dir / "mail_templates"
    ecard_dir = data_dir / "ecard_templates"
    mail_dir.mkdir(parents=True)
    ecard_dir.mkdir(parents=True)

    (mail_dir / "default.html").write_text("<p>#message#</p>")
    (mail_dir / "event_invite.html").write_text("<p>#message#</p>")
    (ecard_dir / "postcard.tpl").write_text("<%ecard_message%>")
    (ecard_dir / "brief_standard.tpl").write_text("<%ecard_message%>")

    return settings.model_copy(update={"data_dir": data_dir})


@pytest.fixture
def http_request() -> Request:
    """A bare GET request for rendering templates outside of the app."""
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [],
            "query_string": b"",
        }
    )
