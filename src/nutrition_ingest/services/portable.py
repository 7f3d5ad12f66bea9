"""Packaging of a pre-seeded portable store for distribution."""

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from nutrition_ingest.domain.errors import SetupError
from nutrition_ingest.domain.results import RunReport

SHELL_SCRIPT_NAME = "setup-data.sh"
BATCH_SCRIPT_NAME = "setup-data.bat"

_SHELL_TEMPLATE = """#!/bin/sh
# Installs the pre-seeded ingredient and exercise database.
set -e

echo "Setting up reference data..."
mkdir -p "{runtime_dir}"
cp "{source}" "{target}"
echo "Data setup complete: {target}"
"""

_BATCH_TEMPLATE = """@echo off
REM Installs the pre-seeded ingredient and exercise database.

echo Setting up reference data...
if not exist "{runtime_dir}" mkdir "{runtime_dir}"
copy /Y "{source}" "{target}"
echo Data setup complete: {target}
pause
"""

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortableResult:
    """Files produced by a portable build."""

    database_path: Path
    distributed_path: Path
    shell_script: Path
    batch_script: Path
    size_bytes: int
    report: RunReport


@dataclass
class PortableBuilder:
    """Builds the portable store from scratch and packages it with setup scripts."""

    database_path: Path
    dist_dir: Path
    runtime_db_path: Path

    def prepare(self) -> None:
        """Create output directories and remove any store left by an earlier build.

        Failure here aborts the build.
        """
        for directory in (self.database_path.parent, self.dist_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise SetupError(f"Cannot create directory {directory}: {exc}") from exc
        try:
            self.database_path.unlink(missing_ok=True)
        except OSError as exc:
            message = f"Cannot remove previous store {self.database_path}: {exc}"
            raise SetupError(message) from exc

    def build(self, ingest: Callable[[Path], RunReport]) -> PortableResult:
        """Prepare directories, run ``ingest`` against the store file, package it."""
        self.prepare()
        report = ingest(self.database_path)
        return self.package(report)

    def package(self, report: RunReport) -> PortableResult:
        """Copy the populated store to the dist directory and write scripts."""
        distributed = self.dist_dir / self.database_path.name
        try:
            shutil.copy2(self.database_path, distributed)
            shell_script = self._write_shell_script(distributed)
            batch_script = self._write_batch_script(distributed)
        except OSError as exc:
            raise SetupError(f"Cannot package portable store: {exc}") from exc

        size = distributed.stat().st_size
        _logger.info(
            "Portable store at %s (%.2f MB)", distributed, size / (1024 * 1024)
        )
        _logger.info("Setup scripts: %s, %s", shell_script, batch_script)
        return PortableResult(
            database_path=self.database_path,
            distributed_path=distributed,
            shell_script=shell_script,
            batch_script=batch_script,
            size_bytes=size,
            report=report,
        )

    def _write_shell_script(self, distributed: Path) -> Path:
        script = self.dist_dir / SHELL_SCRIPT_NAME
        script.write_text(
            _SHELL_TEMPLATE.format(
                runtime_dir=self.runtime_db_path.parent.as_posix(),
                source=distributed.as_posix(),
                target=self.runtime_db_path.as_posix(),
            ),
            encoding="utf-8",
        )
        script.chmod(0o755)
        return script

    def _write_batch_script(self, distributed: Path) -> Path:
        script = self.dist_dir / BATCH_SCRIPT_NAME
        script.write_text(
            _BATCH_TEMPLATE.format(
                runtime_dir=PureWindowsPath(self.runtime_db_path.parent.as_posix()),
                source=PureWindowsPath(distributed.as_posix()),
                target=PureWindowsPath(self.runtime_db_path.as_posix()),
            ),
            encoding="utf-8",
            newline="\r\n",
        )
        return script
