"""Assembler and transport shipped with courier.

The JSON manifest assembler and filesystem transport deliver a package to a
local directory. They serve repositories that are fed by a file drop and are
used for local runs.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.deposit.port.transport import Package, TransportResponse
from courier.domain.shared.error import ConfigurationError


class JsonManifestAssembler:
    """Packages a snapshot as a JSON manifest referencing the file locations."""

    async def assemble(self, snapshot: DepositSubmission, options: dict[str, Any]) -> Package:
        manifest = {
            "submission_id": snapshot.submission_id,
            "publication_id": snapshot.publication_id,
            "metadata": snapshot.metadata,
            "files": [f.model_dump(mode="json") for f in snapshot.files],
        }
        return Package(
            name=f"{snapshot.submission_id}.json",
            content_type="application/json",
            content=json.dumps(manifest, indent=options.get("indent", 2), sort_keys=True).encode(),
            packaging="courier:json-manifest",
        )


class FilesystemSession:
    def __init__(self, directory: Path, accept: bool) -> None:
        self.directory = directory
        self.accept = accept

    def _write(self, package: Package, folder: str) -> str:
        target_dir = self.directory / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / package.name
        target.write_bytes(package.content)
        return target.resolve().as_uri()

    async def send(self, package: Package, context: dict[str, Any]) -> TransportResponse:
        folder = str(context.get("deposit_id") or "unassigned")
        uri = await asyncio.to_thread(self._write, package, folder)
        return TransportResponse(
            status_code=201,
            status_ref=uri,
            terminal_hint=DepositStatus.ACCEPTED if self.accept else None,
            access_url=uri,
        )

    async def close(self) -> None:
        pass


class FilesystemTransport:
    """Writes packages below ``options["directory"]``, one folder per deposit."""

    async def open(self, options: dict[str, Any]) -> FilesystemSession:
        directory = options.get("directory")
        if not directory:
            raise ConfigurationError("The filesystem transport requires a 'directory' option")
        path = Path(directory).expanduser()
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        return FilesystemSession(path, accept=bool(options.get("accept", True)))
