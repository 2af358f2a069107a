# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Lockfile Store

Single responsibility: Persist the set of installed packages (lock.toml)
"""

import logging
import sys
import tomllib
import tomli_w
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .errors import AlreadyInstalledError, LockfileError, NotInstalledError
from .models import InstalledPackage, LockFile

if sys.platform != "win32":
    import fcntl

logger = logging.getLogger(__name__)


class LockfileStore:
    """Read-modify-write access to lock.toml under an advisory lock"""

    def __init__(self, lock_file: Path):
        """
        Initialize lockfile store.

        Args:
            lock_file: Path to lock.toml
        """
        self.lock_file = lock_file
        self.guard_file = lock_file.with_name(lock_file.name + ".lock")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.guard_file, "w") as guard:
            if sys.platform != "win32":
                fcntl.flock(guard.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                if sys.platform != "win32":
                    fcntl.flock(guard.fileno(), fcntl.LOCK_UN)

    def _read(self) -> LockFile:
        if not self.lock_file.exists():
            lock = LockFile()
            self._write(lock)
            return lock

        try:
            with open(self.lock_file, "rb") as f:
                data = tomllib.load(f)
            return LockFile.model_validate(data)
        except (tomllib.TOMLDecodeError, ValueError) as e:
            raise LockfileError(f"failed to parse {self.lock_file}: {e}")

    def _write(self, lock: LockFile):
        # Atomic write: write to temp file, then rename
        temp_path = self.lock_file.with_suffix(".tmp")
        try:
            with open(temp_path, "wb") as f:
                tomli_w.dump(lock.model_dump(), f)
            temp_path.replace(self.lock_file)
        except OSError as e:
            raise LockfileError(f"failed to write {self.lock_file}: {e}")

    def load(self) -> LockFile:
        """Load the lockfile, creating an empty one when missing."""
        with self._locked():
            return self._read()

    def installed(self) -> List[InstalledPackage]:
        return self.load().package

    def get(self, name: str) -> Optional[InstalledPackage]:
        return self.load().get(name)

    def add(self, record: InstalledPackage):
        """
        Add an installed package.

        Raises:
            AlreadyInstalledError: a package with that name is recorded
        """
        with self._locked():
            lock = self._read()
            existing = lock.get(record.name)
            if existing:
                raise AlreadyInstalledError(existing.name, existing.version)
            lock.package.append(record)
            self._write(lock)
        logger.info(f"Recorded {record.name}-{record.version} from {record.source}")

    def remove(self, name: str) -> InstalledPackage:
        """
        Remove an installed package record.

        Returns:
            The removed record

        Raises:
            NotInstalledError: no package with that name is recorded
        """
        with self._locked():
            lock = self._read()
            record = lock.get(name)
            if not record:
                raise NotInstalledError(name)
            lock.package = [p for p in lock.package if p.name != name]
            self._write(lock)
        logger.info(f"Removed record for {record.name}-{record.version}")
        return record
