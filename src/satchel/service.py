# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Manager Service - Modular Composition

Composes focused modules into one package manager.
Each module does one thing well.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .archive import pack_directory
from .config import Config, SourcesConfigLoader
from .index import RepositoryIndexStore, init_repository
from .lockfile import LockfileStore
from .models import InstalledPackage, PackageEntry, PackageSpec, RepoSource, RepositoryIndex
from .operations import PackageOperations
from .prompts import ConsoleUI
from .resolver import SpecResolver
from .script import ScriptInterpreter
from .transactions import TransactionLogger
from .transfer import Downloader

logger = logging.getLogger(__name__)


class PackageManagerService:
    """
    Unified package manager (modular composition).

    Composes:
    - SourcesConfigLoader: Load rc.toml
    - RepositoryIndexStore: Sync and query repository indexes
    - SpecResolver: Resolve package specs
    - LockfileStore: Installed packages
    - ScriptInterpreter: Run PKGFILE lines
    - TransactionLogger: Log transactions
    - PackageOperations: Get/install/upgrade/remove
    """

    def __init__(
        self,
        config: Config,
        ui: Optional[ConsoleUI] = None,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize package manager.

        Args:
            config: Loaded configuration
            ui: Confirmation gates; a console UI when omitted
            http_client: Pre-built HTTP client
        """
        self.config = config
        self.ui = ui or ConsoleUI()

        config.ensure_dirs()

        self.sources = SourcesConfigLoader(config.sources_file)
        self.downloader = Downloader(config.http_timeout, client=http_client)
        self.index_store = RepositoryIndexStore(config.repos_dir, self.sources, self.downloader)
        self.lockfile = LockfileStore(config.lock_file)
        self.resolver = SpecResolver(self.index_store, self.ui)
        self.interpreter = ScriptInterpreter(
            config.bin_dir,
            config.lib_dir,
            Path(config.home_dir),
            self.ui
        )
        self.transaction_logger = TransactionLogger(config.transactions_file)
        self.operations = PackageOperations(
            Path(config.temp_dir),
            self.index_store,
            self.resolver,
            self.downloader,
            self.interpreter,
            self.lockfile,
            self.transaction_logger,
            self.ui
        )

    def close(self):
        self.downloader.close()

    # -- Packages --

    def get(self, text: str) -> InstalledPackage:
        return self.operations.get(text)

    def install(self, path: Path) -> InstalledPackage:
        return self.operations.install_local(path)

    def upgrade(self, text: Optional[str] = None):
        """Upgrade one package, or every outdated one when text is None."""
        if text is None:
            return self.operations.upgrade_all()
        return self.operations.upgrade(text)

    def remove(self, name: Optional[str] = None, all_packages: bool = False):
        if all_packages:
            return self.operations.remove_all()
        return self.operations.remove(name)

    def list_installed(self) -> List[InstalledPackage]:
        return self.lockfile.installed()

    def list_available(self) -> List[Tuple[str, PackageEntry]]:
        return self.index_store.list_available()

    def package_info(self, name: str) -> Dict[str, Any]:
        """
        Everything known about a package name.

        Returns:
            {"installed": InstalledPackage or None,
             "available": [(repository, PackageEntry), ...]}
        """
        available = [
            (repository, entry)
            for repository, entry in self.index_store.list_available()
            if entry.name == name
        ]
        return {"installed": self.lockfile.get(name), "available": available}

    def pack(self, directory: Path, output_dir: Optional[Path] = None) -> Tuple[Path, str]:
        directory = Path(directory)
        return pack_directory(directory, Path(output_dir) if output_dir else directory.parent)

    def history(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self.transaction_logger.list_transactions(limit)

    # -- Repositories --

    def sync(self) -> List[str]:
        return self.index_store.sync()

    def add_repository(self, url: str) -> RepositoryIndex:
        return self.index_store.add_repository(url)

    def remove_repository(self, name: str) -> List[InstalledPackage]:
        return self.operations.remove_repository(name)

    def list_repositories(self) -> List[RepoSource]:
        return self.index_store.list_sources()

    def repository_info(self, name: str) -> Tuple[RepoSource, RepositoryIndex]:
        url = self.index_store.repository_url(name)
        return RepoSource(name=name, url=url), self.index_store.load(name)

    def init_repository(
        self,
        path: Path,
        name: str,
        maintainer: str = "",
        description: str = ""
    ) -> RepositoryIndex:
        return init_repository(Path(path), name, maintainer, description)

    def resolve(self, text: str) -> Optional[PackageSpec]:
        return self.resolver.resolve(text)
