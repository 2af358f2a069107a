# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Operations

Single responsibility: Get, install, upgrade, and remove packages
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .archive import (
    cleanup_working_directory,
    extract_package,
    parse_archive_filename,
    read_pkgfile
)
from .errors import (
    AlreadyInstalledError,
    AlreadyUpToDateError,
    NotInstalledError,
    NothingInstalledError,
    PackageNotFoundError,
    TransactionAborted,
    UserDeclinedError
)
from .index import RepositoryIndexStore
from .lockfile import LockfileStore
from .logging import log_event
from .models import (
    InstalledPackage,
    PackageSpec,
    TransactionOperation,
    TransactionRecord,
    TransactionStatus
)
from .prompts import ConsoleUI
from .resolver import SpecResolver
from .script import (
    ScriptInterpreter,
    parse_pkgfile,
    select_installation_lines,
    select_removal_lines
)
from .transactions import TransactionLogger
from .transfer import (
    ARCHIVE_SUFFIX,
    Downloader,
    archive_url,
    format_size,
    verify_archive
)

logger = logging.getLogger(__name__)


class PackageOperations:
    """Handles package get, local install, upgrade, and removal"""

    def __init__(
        self,
        temp_dir: Path,
        index_store: RepositoryIndexStore,
        resolver: SpecResolver,
        downloader: Downloader,
        interpreter: ScriptInterpreter,
        lockfile: LockfileStore,
        transaction_logger: TransactionLogger,
        ui: ConsoleUI
    ):
        """
        Initialize package operations.

        Args:
            temp_dir: Root for downloads and working directories
            index_store: Repository indexes
            resolver: Package spec resolver
            downloader: HTTP client
            interpreter: PKGFILE executor
            lockfile: Installed package store
            transaction_logger: Transaction journal
            ui: Confirmation gates
        """
        self.temp_dir = temp_dir
        self.index_store = index_store
        self.resolver = resolver
        self.downloader = downloader
        self.interpreter = interpreter
        self.lockfile = lockfile
        self.transaction_logger = transaction_logger
        self.ui = ui

    @contextmanager
    def _transaction(
        self,
        operation: TransactionOperation,
        package_name: str,
        version: Optional[str] = None
    ) -> Iterator[TransactionRecord]:
        transaction = self.transaction_logger.create_transaction(operation, package_name, version)
        self.transaction_logger.start(transaction)
        try:
            yield transaction
        except TransactionAborted as e:
            log_event(
                logger, "transaction_aborted",
                transaction_id=transaction.id,
                operation=operation.value,
                package=package_name,
                version=version,
                error_type=type(e).__name__,
                reason=e.message
            )
            self.transaction_logger.finish(transaction, TransactionStatus.ABORTED, e.message)
            raise
        except Exception as e:
            log_event(
                logger, "transaction_failed", level="ERROR",
                transaction_id=transaction.id,
                operation=operation.value,
                package=package_name,
                version=version,
                error_type=type(e).__name__,
                reason=str(e)
            )
            self.transaction_logger.finish(transaction, TransactionStatus.FAILED, str(e))
            raise
        self.transaction_logger.finish(transaction, TransactionStatus.COMPLETED)

    # =========================================================================
    # INSTALL
    # =========================================================================

    def _run_installation(self, spec: PackageSpec, work_dir: Path) -> InstalledPackage:
        """Confirm and execute the PKGFILE, then record the package."""
        try:
            pkgfile = parse_pkgfile(read_pkgfile(work_dir))
            lines = select_installation_lines(pkgfile)
            self.ui.show_lines(f"The following lines will be executed to install {spec.stem}:", lines)
            if not self.ui.confirm("Do you want to continue?"):
                raise UserDeclinedError(f"installation of {spec.stem}")
            self.interpreter.execute(lines, pkgfile.data, work_dir)
        finally:
            cleanup_working_directory(work_dir)

        record = InstalledPackage(
            name=spec.name,
            version=spec.version,
            target=spec.target,
            source=spec.repository,
            pkgfile=pkgfile
        )
        self.lockfile.add(record)
        log_event(
            logger, "package_installed",
            package=record.name,
            version=record.version,
            source=record.source,
            target=record.target
        )
        self.ui.show(f"{spec.stem} installed")
        return record

    def _install_spec(self, spec: PackageSpec, confirm_download: bool = True) -> InstalledPackage:
        """Download, verify, extract and install a resolved spec."""
        with self._transaction(TransactionOperation.GET, spec.name, spec.version):
            entry = self.index_store.find_entry(spec.repository, spec.name, spec.target)
            version = entry.find_version(spec.version) if entry else None
            if version is None:
                raise PackageNotFoundError(str(spec))

            url = archive_url(self.index_store.repository_url(spec.repository), spec)
            if confirm_download:
                size = self.downloader.content_length(url)
                if not self.ui.confirm(f"Are you sure you want to install {spec} ({format_size(size)})?"):
                    raise UserDeclinedError(f"installation of {spec.stem}")

            self.temp_dir.mkdir(parents=True, exist_ok=True)
            archive = self.temp_dir / f"{spec.stem}{ARCHIVE_SUFFIX}"
            self.downloader.download(url, archive)
            verify_archive(archive, spec.stem, version.checksum)

            work_dir = extract_package(archive, self.temp_dir, spec.stem)
            return self._run_installation(spec, work_dir)

    def get(self, text: str) -> InstalledPackage:
        """
        Resolve, download and install a package from the repositories.

        Args:
            text: `[repo/]name[-version]`

        Returns:
            The new lockfile record

        Raises:
            PackageNotFoundError: no repository offers the package
            AlreadyInstalledError: a package of that name is installed
        """
        spec = self.resolver.resolve(text)
        if spec is None:
            raise PackageNotFoundError(text)

        installed = self.lockfile.get(spec.name)
        if installed:
            raise AlreadyInstalledError(installed.name, installed.version)

        return self._install_spec(spec)

    def install_local(self, path: Path) -> InstalledPackage:
        """
        Install a `name-version.tar.lz4` file from disk.

        The user's archive is left in place. An installed package of the
        same name is removed first, after confirmation.
        """
        path = Path(path)
        if not path.is_file():
            raise PackageNotFoundError(str(path))
        spec = parse_archive_filename(path.name)

        existing = self.lockfile.get(spec.name)
        if existing:
            if not self.ui.confirm(
                f"{existing.name}-{existing.version} is already installed. Remove it first?"
            ):
                raise UserDeclinedError(f"installation of {spec.stem}")
            self._remove(existing, confirm=False)

        if not self.ui.confirm(f"Are you sure you want to install {spec.stem} from {path}?"):
            raise UserDeclinedError(f"installation of {spec.stem}")

        with self._transaction(TransactionOperation.INSTALL, spec.name, spec.version):
            work_dir = extract_package(path, self.temp_dir, spec.stem, keep_source=True)
            return self._run_installation(spec, work_dir)

    # =========================================================================
    # UPGRADE
    # =========================================================================

    def upgrade(self, text: str) -> InstalledPackage:
        """
        Replace an installed package with the resolved version.

        Removal and re-install are not atomic: if the install fails the
        package stays uninstalled.

        Raises:
            PackageNotFoundError: no repository offers the package
            NotInstalledError: the package is not installed from the
                resolved repository
            AlreadyUpToDateError: installed version equals the resolved one
        """
        spec = self.resolver.resolve(text)
        if spec is None:
            raise PackageNotFoundError(text)

        # Only a package installed from the resolved repository counts;
        # local installs and other repositories are never replaced here
        installed = self.lockfile.get(spec.name)
        if installed is None or installed.source != spec.repository:
            raise NotInstalledError(f"{spec.repository}/{spec.name}")
        if installed.version == spec.version:
            raise AlreadyUpToDateError(spec.name, spec.version)

        with self._transaction(TransactionOperation.UPGRADE, spec.name, spec.version):
            self._remove(installed, confirm=True)
            return self._install_spec(spec)

    def outdated(self) -> List[Tuple[InstalledPackage, PackageSpec]]:
        """
        Installed repository packages whose current version differs.

        Local packages and packages from unconfigured repositories are
        skipped.
        """
        configured = {source.name for source in self.index_store.list_sources()}
        pending = []
        for record in self.lockfile.installed():
            if record.is_local:
                continue
            if record.source not in configured:
                logger.warning(f"Skipping {record.name}: repository {record.source} is not configured")
                continue
            entry = self.index_store.find_entry(record.source, record.name)
            if entry is None:
                logger.warning(f"Skipping {record.name}: no longer offered by {record.source}")
                continue
            current = entry.current_version
            if current and current != record.version:
                pending.append((record, PackageSpec(
                    repository=record.source,
                    name=record.name,
                    version=current,
                    target=entry.target
                )))
        return pending

    def upgrade_all(self) -> List[PackageSpec]:
        """
        Upgrade every outdated package after one confirmation.

        Declining changes nothing. Once started, a failure leaves the
        packages handled so far upgraded and the failing one uninstalled.

        Returns:
            Specs installed
        """
        if not self.lockfile.installed():
            raise NothingInstalledError()

        pending = self.outdated()
        if not pending:
            self.ui.show("all packages are up to date")
            return []

        self.ui.show_lines(
            "The following packages will be upgraded:",
            [f"{record.name} {record.version} -> {spec.version}" for record, spec in pending]
        )
        if not self.ui.confirm("Do you want to continue?"):
            raise UserDeclinedError("upgrade")

        upgraded = []
        for record, spec in pending:
            with self._transaction(TransactionOperation.UPGRADE, spec.name, spec.version):
                self._remove(record, confirm=False)
                self._install_spec(spec, confirm_download=False)
            upgraded.append(spec)
        return upgraded

    # =========================================================================
    # REMOVE
    # =========================================================================

    def _remove(self, record: InstalledPackage, confirm: bool = True):
        """Run the stored removal script and delete the lockfile record."""
        stem = f"{record.name}-{record.version}"
        lines = select_removal_lines(record.pkgfile)
        with self._transaction(TransactionOperation.REMOVE, record.name, record.version):
            if confirm:
                self.ui.show_lines(f"The following lines will be executed to remove {stem}:", lines)
                if not self.ui.confirm("Do you want to continue?"):
                    raise UserDeclinedError(f"removal of {stem}")
            self.interpreter.execute(lines, record.pkgfile.data)
            self.lockfile.remove(record.name)
        log_event(
            logger, "package_removed",
            package=record.name,
            version=record.version,
            source=record.source
        )
        self.ui.show(f"{stem} removed")

    def remove(self, name: str) -> InstalledPackage:
        """
        Remove an installed package using the script captured at install.

        Raises:
            NotInstalledError: the package is not installed
        """
        record = self.lockfile.get(name)
        if record is None:
            raise NotInstalledError(name)
        self._remove(record, confirm=True)
        return record

    def _remove_batch(self, records: List[InstalledPackage], header: str):
        self.ui.show_lines(header, [f"{r.name}-{r.version}" for r in records])
        if not self.ui.confirm("Do you want to continue?"):
            raise UserDeclinedError("removal")
        for record in records:
            self._remove(record, confirm=False)

    def remove_all(self) -> List[InstalledPackage]:
        """Remove every installed package after one confirmation."""
        records = self.lockfile.installed()
        if not records:
            self.ui.show("no packages are installed")
            return []
        self._remove_batch(records, "The following packages will be removed:")
        return records

    def remove_repository(self, name: str) -> List[InstalledPackage]:
        """
        Remove a repository together with every package installed from it.

        Returns:
            Packages removed
        """
        # Raises UnknownRepositoryError before anything is touched
        self.index_store.repository_url(name)

        records = [r for r in self.lockfile.installed() if r.source == name]
        if records:
            self._remove_batch(records, f"Removing repository {name} also removes:")
        elif not self.ui.confirm(f"Are you sure you want to remove repository {name}?"):
            raise UserDeclinedError(f"removal of repository {name}")

        self.index_store.remove_repository(name)
        self.ui.show(f"repository {name} removed")
        return records
