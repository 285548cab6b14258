"""Organization model for multi-organization installations."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.models.base import BaseModel

# Form keys with this prefix are stored on the organization record itself
ORGANIZATION_FIELD_PREFIX = "org_"


class Organization(BaseModel):
    """An organization (club, association, ...) managed by this installation."""

    __tablename__ = "organizations"

    shortname: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    longname: Mapped[str] = mapped_column(String(50), nullable=False)
    homepage: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Form key -> column for fields editable through the preferences forms
    FORM_FIELDS = {
        "org_longname": "longname",
        "org_homepage": "homepage",
    }

    def set_value(self, key: str, value: str) -> None:
        """Set a column by its form key (e.g. ``org_longname``).

        Raises:
            KeyError: If the key does not name an editable field
        """
        column = self.FORM_FIELDS[key]
        setattr(self, column, value)
