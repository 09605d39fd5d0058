"""Unit tests for packager construction and the built-in plugins."""

import json
import threading
from pathlib import Path

import pytest

from courier.config import RepositoryConfig
from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.model.value import DepositFile, DepositStatus
from courier.domain.shared.error import ConfigurationError
from courier.infrastructure.plugin.builtin import (
    FilesystemSession,
    FilesystemTransport,
    JsonManifestAssembler,
)
from courier.infrastructure.plugin.discovery import (
    _validate_plugin_class,
    build_packagers,
    discover_assemblers,
    discover_transports,
)

ASSEMBLERS = {"json": JsonManifestAssembler}
TRANSPORTS = {"filesystem": FilesystemTransport}


def _config(key: str, **kwargs) -> RepositoryConfig:
    return RepositoryConfig(repository_key=key, assembler="json", transport="filesystem", **kwargs)


@pytest.fixture
def snapshot() -> DepositSubmission:
    return DepositSubmission(
        submission_id="s-1",
        publication_id="p-1",
        metadata={"title": "On Couriers"},
        files=(DepositFile(name="paper.pdf", location="s3://bucket/paper.pdf"),),
    )


class TestBuildPackagers:
    def test_one_packager_per_repository(self):
        registry = build_packagers([_config("pmc"), _config("dspace")], ASSEMBLERS, TRANSPORTS)

        assert registry.names() == ["dspace", "pmc"]

    def test_duplicate_repository_key(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            build_packagers([_config("pmc"), _config("pmc")], ASSEMBLERS, TRANSPORTS)

    def test_unknown_transport(self):
        config = RepositoryConfig(repository_key="pmc", assembler="json", transport="ftp")

        with pytest.raises(ConfigurationError, match="Unknown transport 'ftp'"):
            build_packagers([config], ASSEMBLERS, TRANSPORTS)


class TestDiscovery:
    def test_builtin_plugins_are_registered(self):
        assert discover_assemblers()["json"] is JsonManifestAssembler
        assert discover_transports()["filesystem"] is FilesystemTransport

    def test_rejects_non_class(self):
        with pytest.raises(TypeError, match="must be a class"):
            _validate_plugin_class(lambda: None, "fn", ("open",))

    def test_rejects_missing_method(self):
        with pytest.raises(TypeError, match="missing 'open'"):
            _validate_plugin_class(JsonManifestAssembler, "json", ("open",))


class TestBuiltinPlugins:
    @pytest.mark.asyncio
    async def test_manifest_lists_files(self, snapshot: DepositSubmission):
        package = await JsonManifestAssembler().assemble(snapshot, {})

        manifest = json.loads(package.content)
        assert package.name == "s-1.json"
        assert manifest["metadata"] == {"title": "On Couriers"}
        assert manifest["files"][0]["location"] == "s3://bucket/paper.pdf"

    @pytest.mark.asyncio
    async def test_filesystem_transport_writes_package(
        self, tmp_path: Path, snapshot: DepositSubmission
    ):
        package = await JsonManifestAssembler().assemble(snapshot, {})
        session = await FilesystemTransport().open({"directory": str(tmp_path)})

        response = await session.send(package, {"deposit_id": "d-1"})
        await session.close()

        target = tmp_path / "d-1" / "s-1.json"
        assert target.read_bytes() == package.content
        assert response.status_code == 201
        assert response.status_ref == target.resolve().as_uri()
        assert response.terminal_hint == DepositStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_filesystem_transport_can_leave_outcome_open(
        self, tmp_path: Path, snapshot: DepositSubmission
    ):
        session = await FilesystemTransport().open({"directory": str(tmp_path), "accept": False})
        package = await JsonManifestAssembler().assemble(snapshot, {})

        response = await session.send(package, {"deposit_id": "d-1"})

        assert response.terminal_hint is None

    @pytest.mark.asyncio
    async def test_filesystem_transport_writes_off_the_event_loop(
        self, tmp_path: Path, snapshot: DepositSubmission, monkeypatch: pytest.MonkeyPatch
    ):
        threads: list[int] = []
        write = FilesystemSession._write

        def recording_write(session: FilesystemSession, package, folder: str) -> str:
            threads.append(threading.get_ident())
            return write(session, package, folder)

        monkeypatch.setattr(FilesystemSession, "_write", recording_write)
        session = await FilesystemTransport().open({"directory": str(tmp_path)})
        package = await JsonManifestAssembler().assemble(snapshot, {})

        await session.send(package, {"deposit_id": "d-1"})

        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
        assert (tmp_path / "d-1" / "s-1.json").exists()

    @pytest.mark.asyncio
    async def test_filesystem_transport_requires_directory(self):
        with pytest.raises(ConfigurationError, match="directory"):
            await FilesystemTransport().open({})
