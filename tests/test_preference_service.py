"""Tests for validating and persisting preference forms."""

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import func, select

from memberhub.config import settings
from memberhub.exceptions import InvalidInputException
from memberhub.models import AutoLogin, Organization, OrganizationText, Preference
from memberhub.services.i18n_service import get_i18n_service
from memberhub.services.preference_service import (
    Destination,
    PreferenceUpdater,
    resolve_template_file,
    route_key,
    template_label,
)
from memberhub.services.settings_manager import SettingsManager
from memberhub.utils.org_context import get_current_language, set_current_language


async def make_updater(db, organization_id, config=settings) -> PreferenceUpdater:
    organization = await db.get(Organization, organization_id)
    manager = await SettingsManager(db, organization_id).load()
    return PreferenceUpdater(db, organization, manager, get_i18n_service(), config=config)


async def read_preferences(session_factory, organization_id) -> dict[str, str]:
    async with session_factory() as db:
        return (await SettingsManager(db, organization_id).load()).all()


class TestRouteKey:
    @pytest.mark.parametrize(
        "key,destination",
        [
            ("org_longname", Destination.ORGANIZATION),
            ("org_anything", Destination.ORGANIZATION),
            ("SYSMAIL_REGISTRATION_NEW", Destination.TEXT),
            ("theme", Destination.PREFERENCE),
            ("organization_select", Destination.PREFERENCE),
            ("sysmail_lowercase", Destination.PREFERENCE),
        ],
    )
    def test_prefix_decides_destination(self, key, destination):
        assert route_key(key) is destination


class TestTemplateResolution:
    def test_label_strips_extension_and_separators(self):
        assert template_label("event_invite.html") == "Event invite"
        assert template_label("brief-standard.tpl") == "Brief standard"
        assert template_label("default.txt") == "Default"

    def test_resolves_label_to_file(self, template_config):
        folder = template_config.mail_templates_dir
        assert resolve_template_file(folder, "Event invite") == "event_invite.html"

    def test_unknown_label_gives_empty_string(self, template_config):
        assert resolve_template_file(template_config.mail_templates_dir, "Missing") == ""

    def test_resolving_twice_is_stable(self, template_config):
        folder = template_config.ecard_templates_dir
        file_name = resolve_template_file(folder, "Postcard")
        assert file_name == "postcard.tpl"
        assert resolve_template_file(folder, template_label(file_name)) == file_name

    def test_missing_folder_gives_empty_string(self, tmp_path: Path):
        assert resolve_template_file(tmp_path / "nope", "Default") == ""


class TestPreferenceUpdater:
    def test_unknown_theme_writes_nothing(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply(
                    "Common",
                    {"theme": "nonexistent-theme", "org_longname": "Changed", "enable_rss": "0"},
                )

        with pytest.raises(InvalidInputException) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.kind == "InvalidTheme"
        values = asyncio.run(read_preferences(session_factory, organization_id))
        assert values["theme"] == "simple"
        assert values["enable_rss"] == "1"

    def test_common_form_updates_organization_and_checkboxes(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply(
                    "Common",
                    {
                        "theme": "simple",
                        "org_longname": "Demo Club",
                        "homepage_logout": "/goodbye",
                        "system_cookie_note": "1",
                        "save": "1",
                        "csrf_token": "token",
                    },
                )
                await db.commit()

            async with session_factory() as db:
                organization = await db.get(Organization, organization_id)
                return organization.longname

        longname = asyncio.run(scenario())
        values = asyncio.run(read_preferences(session_factory, organization_id))

        assert longname == "Demo Club"
        assert values["homepage_logout"] == "/goodbye"
        assert values["system_cookie_note"] == "1"
        # Unticked checkboxes are stored as "0"
        assert values["enable_rss"] == "0"
        assert values["system_show_create_edit"] == "0"
        assert "save" not in values
        assert "csrf_token" not in values
        assert "org_longname" not in values

    def test_disabling_auto_login_purges_tokens(self, session_factory, organization_id, admin_user_id):
        async def scenario():
            async with session_factory() as db:
                for _ in range(3):
                    db.add(AutoLogin(organization_id=organization_id, user_id=admin_user_id))
                await db.commit()

            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                # The checkbox is not submitted when unticked
                await updater.apply("Security", {"logout_minutes": "30"})
                await db.commit()

            async with session_factory() as db:
                return (await db.execute(select(func.count(AutoLogin.id)))).scalar()

        remaining = asyncio.run(scenario())
        values = asyncio.run(read_preferences(session_factory, organization_id))

        assert remaining == 0
        assert values["enable_auto_login"] == "0"
        assert values["logout_minutes"] == "30"

    def test_keeping_auto_login_keeps_tokens(self, session_factory, organization_id, admin_user_id):
        async def scenario():
            async with session_factory() as db:
                db.add(AutoLogin(organization_id=organization_id, user_id=admin_user_id))
                await db.commit()

            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("Security", {"enable_auto_login": "1"})
                await db.commit()

            async with session_factory() as db:
                return (await db.execute(select(func.count(AutoLogin.id)))).scalar()

        assert asyncio.run(scenario()) == 1

    def test_system_mail_texts_go_to_text_store(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply(
                    "SystemNotifications",
                    {"SYSMAIL_REGISTRATION_NEW": "A new user registered: #user#"},
                )
                await db.commit()

            async with session_factory() as db:
                texts = (await db.execute(select(OrganizationText))).scalars().all()
                preference_names = (await db.execute(select(Preference.name))).scalars().all()
                return texts, preference_names

        texts, preference_names = asyncio.run(scenario())

        assert [(t.name, t.text) for t in texts] == [
            ("SYSMAIL_REGISTRATION_NEW", "A new user registered: #user#")
        ]
        assert "SYSMAIL_REGISTRATION_NEW" not in preference_names

    def test_unknown_form_is_rejected(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("Plugins", {"theme": "other"})

        with pytest.raises(InvalidInputException) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.kind == "InvalidPageView"

    def test_unknown_organization_field_is_rejected(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("Common", {"theme": "simple", "org_shortname": "HACK"})

        with pytest.raises(InvalidInputException) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.kind == "InvalidField"

    @pytest.mark.parametrize("key", ["SYSMAIL_lower", "MixedCase", "with space"])
    def test_malformed_key_names_are_rejected(self, session_factory, organization_id, key):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("Common", {"theme": "simple", key: "1"})

        with pytest.raises(InvalidInputException) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.kind == "InvalidField"
        assert key not in asyncio.run(read_preferences(session_factory, organization_id))

    def test_unknown_language_is_rejected(self, session_factory, organization_id):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("RegionalSettings", {"system_language": "xx"})

        with pytest.raises(InvalidInputException) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.kind == "MissingRequiredField"

    def test_language_change_switches_current_language(self, session_factory, organization_id):
        async def scenario():
            set_current_language("en")
            async with session_factory() as db:
                updater = await make_updater(db, organization_id)
                await updater.apply("RegionalSettings", {"system_language": "de"})
                await db.commit()
            return get_current_language()

        assert asyncio.run(scenario()) == "de"
        assert asyncio.run(read_preferences(session_factory, organization_id))["system_language"] == "de"

    def test_template_label_is_stored_as_file_name(
        self, session_factory, organization_id, template_config
    ):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id, config=template_config)
                await updater.apply("Messages", {"mail_template": "Event invite"})
                await db.commit()

        asyncio.run(scenario())
        values = asyncio.run(read_preferences(session_factory, organization_id))

        assert values["mail_template"] == "event_invite.html"
        assert values["mail_module_enabled"] == "0"

    def test_unchanged_template_is_kept(self, session_factory, organization_id, template_config):
        async def scenario():
            async with session_factory() as db:
                updater = await make_updater(db, organization_id, config=template_config)
                await updater.apply("Photos", {"photo_ecard_template": "postcard.tpl"})
                await db.commit()

        asyncio.run(scenario())
        values = asyncio.run(read_preferences(session_factory, organization_id))

        assert values["photo_ecard_template"] == "postcard.tpl"
