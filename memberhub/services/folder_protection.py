"""Protection of the data folder against direct web access."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

HTACCESS_FILE = ".htaccess"
HTACCESS_CONTENT = """\
# Generated by MemberHub: files of this folder are only delivered through the application
<IfModule mod_authz_core.c>
    Require all denied
</IfModule>
<IfModule !mod_authz_core.c>
    Order allow,deny
    Deny from all
</IfModule>
"""


class FolderProtector:
    """Writes an ``.htaccess`` file that denies web access to a folder."""

    def __init__(self, folder: Path):
        self.folder = folder

    @property
    def htaccess_path(self) -> Path:
        return self.folder / HTACCESS_FILE

    def is_protected(self) -> bool:
        """Check if the folder already carries a protection file."""
        return self.htaccess_path.is_file()

    def protect(self) -> bool:
        """Create the protection file.

        Returns:
            True if the folder is protected afterwards
        """
        if self.is_protected():
            return True

        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            self.htaccess_path.write_text(HTACCESS_CONTENT, encoding="utf-8")
        except OSError as e:
            logger.warning(f"htaccess file could not be created in {self.folder}: {e}")
            return False

        logger.info(f"Protected folder {self.folder}")
        return True
