"""Per-organization preference store backed by the preferences table."""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.models import Preference

logger = logging.getLogger(__name__)

ENABLED_VALUES = frozenset({"1", "true", "on", "yes"})
DISABLED_VALUES = frozenset({"", "0", "false", "off", "no"})


def is_enabled(value: str | None) -> bool:
    """Check whether a stored or submitted flag value means "on"."""
    return value is not None and value.strip().lower() in ENABLED_VALUES


def is_disabled(value: str | None) -> bool:
    """Check whether a flag value means "off" (an absent value counts as off)."""
    return value is None or value.strip().lower() in DISABLED_VALUES


class SettingsManager:
    """Typed access to the preferences of one organization.

    Rows are loaded once per request by :meth:`load`. Reads are served from
    plain copies of the values, so they keep working after the session was
    rolled back. Writes go through the session of the current request and
    commit or roll back together with everything else in it.
    """

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id
        self._rows: dict[str, Preference] | None = None
        self._values: dict[str, str] = {}

    async def load(self) -> "SettingsManager":
        """Read all preferences of the organization into the cache."""
        result = await self.db.execute(
            select(Preference).where(Preference.organization_id == self.organization_id)
        )
        self._rows = {row.name: row for row in result.scalars().all()}
        self._values = {name: row.value for name, row in self._rows.items()}
        return self

    async def reload(self) -> None:
        """Drop the cache and read the preferences again."""
        await self.db.flush()
        await self.load()

    def _ensure_loaded(self) -> None:
        if self._rows is None:
            raise RuntimeError("SettingsManager.load() must be awaited before reading preferences")

    @property
    def rows(self) -> dict[str, Preference]:
        self._ensure_loaded()
        return self._rows

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get a raw preference value."""
        self._ensure_loaded()
        return self._values.get(name, default)

    def get_string(self, name: str) -> str:
        return self.get(name, "") or ""

    def get_bool(self, name: str) -> bool:
        return is_enabled(self.get(name))

    def get_int(self, name: str, default: int = 0) -> int:
        try:
            return int(self.get(name, ""))
        except (TypeError, ValueError):
            return default

    def all(self) -> dict[str, str]:
        """Get all preferences as a plain dict."""
        self._ensure_loaded()
        return dict(self._values)

    async def set(self, name: str, value: str) -> None:
        """Create or overwrite a single preference."""
        value = "" if value is None else str(value)
        row = self.rows.get(name)
        if row is None:
            row = Preference(
                organization_id=self.organization_id,
                name=name,
                value=value,
            )
            self.db.add(row)
            self.rows[name] = row
        else:
            row.value = value
        self._values[name] = value

    async def set_many(self, values: dict[str, str], update_existing: bool = True) -> None:
        """Write several preferences at once.

        Args:
            values: Preference names mapped to their new values
            update_existing: If False, names that already exist keep their value
        """
        for name, value in values.items():
            if not update_existing and name in self.rows:
                continue
            await self.set(name, value)
        await self.db.flush()


async def set_preference_for_all_organizations(db: AsyncSession, name: str, value: str) -> int:
    """Overwrite a preference in every organization that has it.

    Returns:
        Number of updated rows
    """
    result = await db.execute(
        update(Preference).where(Preference.name == name).values(value=value)
    )
    logger.info(f"Set preference {name}={value!r} for {result.rowcount} organizations")
    return result.rowcount
