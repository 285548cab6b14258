"""Tests for database backups."""

import asyncio
import gzip
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from memberhub.config import settings
from memberhub.exceptions import MemberHubException, UnsupportedConfiguration
from memberhub.services.backup_service import DatabaseDumper


@pytest.fixture
def postgres_config():
    return settings.model_copy(
        update={"database_url": "postgresql+asyncpg://user:secret@db:5432/memberhub"}
    )


def fake_process(returncode: int, stdout: bytes = b"", stderr: bytes = b""):
    process = Mock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    return process


class TestDatabaseDumper:
    def test_sqlite_is_unsupported(self, tmp_path: Path):
        dumper = DatabaseDumper(backup_dir=tmp_path)

        assert dumper.is_supported() is False
        with pytest.raises(UnsupportedConfiguration):
            asyncio.run(dumper.create())

    def test_dump_is_compressed(self, tmp_path: Path, postgres_config):
        dumper = DatabaseDumper(config=postgres_config, backup_dir=tmp_path)

        with patch(
            "asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            return_value=fake_process(0, b"CREATE TABLE organizations ();"),
        ) as create_process:
            path = asyncio.run(dumper.create())

        assert path == tmp_path / "memberhub_dump_memberhub.sql.gz"
        assert gzip.decompress(path.read_bytes()) == b"CREATE TABLE organizations ();"
        args = create_process.await_args.args
        assert args[0] == "pg_dump"
        assert "postgresql://user:secret@db:5432/memberhub" in args

    def test_failed_dump_raises(self, tmp_path: Path, postgres_config):
        dumper = DatabaseDumper(config=postgres_config, backup_dir=tmp_path)

        with patch(
            "asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            return_value=fake_process(1, stderr=b"connection refused"),
        ):
            with pytest.raises(MemberHubException) as exc_info:
                asyncio.run(dumper.create())

        assert exc_info.value.message_key == "errors.backup_failed"

    def test_cleanup_deletes_dump(self, tmp_path: Path, postgres_config):
        dumper = DatabaseDumper(config=postgres_config, backup_dir=tmp_path)
        dumper.dump_path = tmp_path / "dump.sql.gz"
        dumper.dump_path.write_bytes(b"data")

        response = dumper.export()
        assert response.filename == "dump.sql.gz"

        dumper.cleanup()
        assert not (tmp_path / "dump.sql.gz").exists()
