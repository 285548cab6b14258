"""Database backups streamed to the administrator as a gzip file."""

import asyncio
import gzip
import logging
from pathlib import Path

from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from memberhub.config import Settings, settings as app_settings
from memberhub.exceptions import MemberHubException, UnsupportedConfiguration

logger = logging.getLogger(__name__)

SUPPORTED_ENGINES = ("postgresql",)


class DatabaseDumper:
    """Creates a compressed SQL dump with ``pg_dump`` and hands it out once."""

    def __init__(self, config: Settings = app_settings, backup_dir: Path | None = None):
        self.config = config
        self.backup_dir = backup_dir or config.data_dir / "backup"
        self.dump_path: Path | None = None

    def is_supported(self) -> bool:
        """Check if backups are available for the configured database engine."""
        return self.config.database_engine in SUPPORTED_ENGINES

    @property
    def database_name(self) -> str:
        return self.config.sync_database_url.rsplit("/", 1)[-1].split("?", 1)[0]

    async def create(self, file_name: str | None = None) -> Path:
        """Dump the database into a gzip file in the backup folder.

        Raises:
            UnsupportedConfiguration: If the database engine is not supported
            MemberHubException: If the dump command fails
        """
        if not self.is_supported():
            raise UnsupportedConfiguration(
                f"Backups are not available for {self.config.database_engine} databases"
            )

        file_name = file_name or f"memberhub_dump_{self.database_name}.sql.gz"
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        self.dump_path = self.backup_dir / file_name

        logger.info(f"Creating database dump {self.dump_path}")
        process = await asyncio.create_subprocess_exec(
            self.config.database_dump_command,
            "--no-owner",
            "--dbname",
            self.config.sync_database_url,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            logger.error(
                f"Database dump failed with code {process.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )
            raise MemberHubException(
                "The database backup could not be created",
                500,
                message_key="errors.backup_failed",
            )

        with gzip.open(self.dump_path, "wb") as f:
            f.write(stdout)

        return self.dump_path

    def export(self) -> FileResponse:
        """Build the download response; the dump file is deleted once it was sent."""
        if self.dump_path is None:
            raise RuntimeError("DatabaseDumper.create() must be awaited before export()")

        return FileResponse(
            self.dump_path,
            media_type="application/gzip",
            filename=self.dump_path.name,
            background=BackgroundTask(self.cleanup),
        )

    def cleanup(self) -> None:
        """Delete the dump file."""
        if self.dump_path is not None and self.dump_path.exists():
            self.dump_path.unlink()
            logger.info(f"Deleted database dump {self.dump_path}")
        self.dump_path = None
