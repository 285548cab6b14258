"""Tests for the per-organization preference store."""

import asyncio

import pytest

from memberhub.models import Organization
from memberhub.services.settings_manager import (
    SettingsManager,
    is_disabled,
    is_enabled,
    set_preference_for_all_organizations,
)


class TestFlagCoercion:
    @pytest.mark.parametrize("value", ["1", "true", "on", "yes", "TRUE", " 1 "])
    def test_enabled_values(self, value):
        assert is_enabled(value)
        assert not is_disabled(value)

    @pytest.mark.parametrize("value", [None, "", "0", "false", "off", "no"])
    def test_disabled_values(self, value):
        assert is_disabled(value)
        assert not is_enabled(value)

    def test_other_values_are_neither(self):
        assert not is_enabled("maybe")
        assert not is_disabled("maybe")


class TestSettingsManager:
    def test_reads_seeded_defaults(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                manager = await SettingsManager(db, organization_id).load()
                return manager

        manager = asyncio.run(scenario())

        assert manager.get_string("theme") == "simple"
        assert manager.get_string("email_administrator") == "admin@example.org"
        assert manager.get_bool("enable_auto_login") is True
        assert manager.get_int("logout_minutes") == 20
        assert manager.get("does_not_exist") is None

    def test_set_creates_and_overwrites(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                manager = await SettingsManager(db, organization_id).load()
                await manager.set("custom_flag", "1")
                await manager.set("theme", "dark")
                await db.commit()

            async with session_factory() as db:
                return (await SettingsManager(db, organization_id).load()).all()

        values = asyncio.run(scenario())

        assert values["custom_flag"] == "1"
        assert values["theme"] == "dark"

    def test_set_many_can_keep_existing_values(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                manager = await SettingsManager(db, organization_id).load()
                await manager.set_many({"theme": "dark", "new_key": "x"}, update_existing=False)
                await db.commit()

            async with session_factory() as db:
                return (await SettingsManager(db, organization_id).load()).all()

        values = asyncio.run(scenario())

        assert values["theme"] == "simple"
        assert values["new_key"] == "x"

    def test_reads_survive_a_rollback(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                manager = await SettingsManager(db, organization_id).load()
                await db.rollback()
                return manager.get_string("theme"), manager.all()["email_administrator"]

        assert asyncio.run(scenario()) == ("simple", "admin@example.org")

    def test_reading_before_load_raises(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                SettingsManager(db, organization_id).get("theme")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

    def test_set_for_all_organizations(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                other = Organization(shortname="OTHER", longname="Other", homepage="")
                db.add(other)
                await db.flush()
                manager = await SettingsManager(db, other.id).load()
                await manager.set("system_organization_select", "0")
                await db.flush()

                updated = await set_preference_for_all_organizations(
                    db, "system_organization_select", "1"
                )
                await db.commit()

                first = await SettingsManager(db, organization_id).load()
                second = await SettingsManager(db, other.id).load()
                return updated, first.get("system_organization_select"), second.get(
                    "system_organization_select"
                )

        updated, first, second = asyncio.run(scenario())

        assert updated == 2
        assert first == "1"
        assert second == "1"
