# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Repository Index Store

Single responsibility: Manage synced repository indexes (load, sync, add,
remove, query)
"""

import logging
import tomllib
import tomli_w
from pathlib import Path
from typing import List, Optional, Tuple

from .config import SourcesConfigLoader
from .errors import ConfigurationError, RepositoryExistsError, UnknownRepositoryError
from .models import PackageEntry, RepoSource, RepositoryIndex, RepositoryInfo
from .targets import ANY_TARGET, is_supported
from .transfer import INDEX_DOCUMENT, Downloader, index_url

logger = logging.getLogger(__name__)

# Target directories created for a new repository
DEFAULT_TARGETS = (ANY_TARGET, "x86_64-linux", "aarch64-linux")


def parse_index(text: str, origin: str) -> RepositoryIndex:
    """
    Parse a repo.toml document.

    Args:
        text: TOML text
        origin: File path or URL, for error messages
    """
    try:
        return RepositoryIndex.model_validate(tomllib.loads(text))
    except (tomllib.TOMLDecodeError, ValueError) as e:
        raise ConfigurationError(f"invalid repository index {origin}: {e}", path=origin)


def init_repository(
    path: Path,
    name: str,
    maintainer: str = "",
    description: str = ""
) -> RepositoryIndex:
    """
    Scaffold a servable repository: an empty repo.toml plus one
    directory per default target.

    Raises:
        ConfigurationError: path already holds a repo.toml
    """
    path = Path(path)
    index_path = path / INDEX_DOCUMENT
    if index_path.exists():
        raise ConfigurationError(f"{index_path} already exists", path=str(index_path))

    for target in DEFAULT_TARGETS:
        (path / target).mkdir(parents=True, exist_ok=True)

    index = RepositoryIndex(
        repo=RepositoryInfo(name=name, maintainer=maintainer, description=description)
    )
    with open(index_path, "wb") as f:
        tomli_w.dump(index.model_dump(exclude_none=True), f)
    logger.info(f"Initialised repository {name} at {path}")
    return index


class RepositoryIndexStore:
    """Reads indexes fresh from disk; replaces them wholesale on sync"""

    def __init__(
        self,
        repos_dir: Path,
        sources: SourcesConfigLoader,
        downloader: Downloader
    ):
        """
        Initialize repository index store.

        Args:
            repos_dir: Directory holding <name>.toml indexes
            sources: Loader for rc.toml
            downloader: HTTP client used to fetch repo.toml
        """
        self.repos_dir = repos_dir
        self.sources = sources
        self.downloader = downloader

    def _index_file(self, name: str) -> Path:
        return self.repos_dir / f"{name}.toml"

    def _save(self, index: RepositoryIndex):
        self.repos_dir.mkdir(parents=True, exist_ok=True)
        path = self._index_file(index.repo.name)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "wb") as f:
            tomli_w.dump(index.model_dump(exclude_none=True), f)
        temp_path.replace(path)

    def list_sources(self) -> List[RepoSource]:
        return self.sources.load().repos

    def repository_url(self, name: str) -> str:
        source = self.sources.load().get(name)
        if not source:
            raise UnknownRepositoryError(name)
        return source.url

    def load(self, name: str) -> RepositoryIndex:
        """
        Load one synced index.

        Raises:
            ConfigurationError: index file missing or malformed
        """
        path = self._index_file(name)
        if not path.exists():
            raise ConfigurationError(
                f"repository index for '{name}' is missing, try: satchel repo add <url>",
                path=str(path)
            )
        return parse_index(path.read_text(encoding="utf-8"), str(path))

    def load_all(self) -> List[RepositoryIndex]:
        """
        Load every configured repository's index, in configuration order.

        Raises:
            ConfigurationError: no repositories are configured
        """
        sources = self.list_sources()
        if not sources:
            raise ConfigurationError("you have no repositories set, try: satchel repo add <url>")
        return [self.load(source.name) for source in sources]

    def sync(self) -> List[str]:
        """
        Re-fetch every configured repository's index.

        Returns:
            Names of the synced repositories
        """
        synced = []
        for source in self.list_sources():
            logger.info(f"Syncing {source.name} from {source.url}")
            index = parse_index(self.downloader.fetch_text(index_url(source.url)), source.url)
            if index.repo.name != source.name:
                logger.warning(
                    f"Repository at {source.url} now calls itself {index.repo.name}, "
                    f"keeping configured name {source.name}"
                )
                index.repo.name = source.name
            self._save(index)
            synced.append(source.name)
        return synced

    def add_repository(self, url: str) -> RepositoryIndex:
        """
        Fetch a repository's index and add it to the sources.

        Raises:
            RepositoryExistsError: URL or repository name already configured
        """
        url = url.rstrip("/")
        config = self.sources.load()
        for source in config.repos:
            if source.url.rstrip("/") == url:
                raise RepositoryExistsError(url)

        index = parse_index(self.downloader.fetch_text(index_url(url)), url)
        if config.get(index.repo.name):
            raise RepositoryExistsError(index.repo.name)

        self._save(index)
        config.sources.repos.append(RepoSource(name=index.repo.name, url=url))
        self.sources.save(config)
        logger.info(f"Added repository {index.repo.name} ({url})")
        return index

    def remove_repository(self, name: str):
        """Drop a repository from the sources and delete its index."""
        config = self.sources.load()
        if not config.get(name):
            raise UnknownRepositoryError(name)
        config.sources.repos = [r for r in config.repos if r.name != name]
        self.sources.save(config)
        self._index_file(name).unlink(missing_ok=True)
        logger.info(f"Removed repository {name}")

    def find_entry(
        self,
        repository: str,
        name: str,
        target: Optional[str] = None
    ) -> Optional[PackageEntry]:
        """
        Entry for name in one repository.

        Args:
            repository: Repository name
            name: Package name
            target: Exact target to match; any supported target when omitted
        """
        for entry in self.load(repository).packages:
            if entry.name != name:
                continue
            if target is not None and entry.target == target:
                return entry
            if target is None and is_supported(entry.target):
                return entry
        return None

    def list_available(self) -> List[Tuple[str, PackageEntry]]:
        """(repository, entry) for every package any repository offers here."""
        available = []
        for index in self.load_all():
            for entry in index.packages:
                if is_supported(entry.target):
                    available.append((index.repo.name, entry))
        return available
