# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
satchel Data Models

Defines data structures for repository indexes, sources, package
scripts, lockfile records and transactions.
"""

from typing import List, Dict, Optional, Any
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field

LOCAL_SOURCE = "local"


class TransactionStatus(str, Enum):
    """Transaction status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class TransactionOperation(str, Enum):
    """Type of transaction operation"""
    GET = "get"
    INSTALL = "install"
    UPGRADE = "upgrade"
    REMOVE = "remove"


# =============================================================================
# REPOSITORY INDEX
# =============================================================================

class VersionEntry(BaseModel):
    """One published version of a package"""
    tag: str
    checksum: str


class PackageEntry(BaseModel):
    """
    Package as listed in a repository index.

    Versions are stored oldest first; ``current`` names the version
    installed when none is requested.
    """
    name: str
    target: str
    current: Optional[str] = None
    versions: List[VersionEntry] = Field(default_factory=list)
    author: str = ""
    description: str = ""
    url: str = ""

    @property
    def current_version(self) -> Optional[str]:
        if self.current:
            return self.current
        if self.versions:
            return self.versions[-1].tag
        return None

    def newest_first(self) -> List[VersionEntry]:
        return list(reversed(self.versions))

    def find_version(self, tag: str) -> Optional[VersionEntry]:
        for version in self.versions:
            if version.tag == tag:
                return version
        return None


class RepositoryInfo(BaseModel):
    """Repository header"""
    name: str
    maintainer: str = ""
    description: str = ""


class IndexSection(BaseModel):
    packages: List[PackageEntry] = Field(default_factory=list)


class RepositoryIndex(BaseModel):
    """Complete repo.toml document"""
    repo: RepositoryInfo
    index: IndexSection = Field(default_factory=IndexSection)

    @property
    def packages(self) -> List[PackageEntry]:
        return self.index.packages


# =============================================================================
# SOURCES
# =============================================================================

class RepoSource(BaseModel):
    """Configured repository and the URL its index is fetched from"""
    name: str
    url: str


class SourcesSection(BaseModel):
    repos: List[RepoSource] = Field(default_factory=list)


class SourcesConfig(BaseModel):
    """rc.toml document"""
    sources: SourcesSection = Field(default_factory=SourcesSection)

    @property
    def repos(self) -> List[RepoSource]:
        return self.sources.repos

    def get(self, name: str) -> Optional[RepoSource]:
        for repo in self.sources.repos:
            if repo.name == name:
                return repo
        return None


# =============================================================================
# PACKAGES
# =============================================================================

class Pkgfile(BaseModel):
    """Parsed PKGFILE: data substitutions plus install and removal lines"""
    data: Dict[str, str] = Field(default_factory=dict)
    installation_lines: List[str] = Field(default_factory=list)
    win_installation_lines: List[str] = Field(default_factory=list)
    removal_lines: List[str] = Field(default_factory=list)
    win_removal_lines: List[str] = Field(default_factory=list)


class PackageSpec(BaseModel):
    """Fully resolved package identity"""
    repository: str
    name: str
    version: str
    target: str

    @property
    def stem(self) -> str:
        return f"{self.name}-{self.version}"

    def __str__(self) -> str:
        return f"{self.repository}/{self.name}-{self.version}"


class InstalledPackage(BaseModel):
    """Lockfile record of an installed package"""
    name: str
    version: str
    target: str
    source: str
    pkgfile: Pkgfile = Field(default_factory=Pkgfile)

    @property
    def is_local(self) -> bool:
        return self.source == LOCAL_SOURCE


class LockFile(BaseModel):
    """lock.toml document"""
    package: List[InstalledPackage] = Field(default_factory=list)

    def get(self, name: str) -> Optional[InstalledPackage]:
        for record in self.package:
            if record.name == name:
                return record
        return None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionRecord(BaseModel):
    """Transaction record for operations"""
    id: str
    operation: TransactionOperation
    package_name: str
    version: Optional[str] = None
    status: TransactionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "operation": self.operation.value,
            "package_name": self.package_name,
            "version": self.version,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error
        }
