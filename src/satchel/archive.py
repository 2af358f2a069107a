# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Archive Pipeline

Single responsibility: Unpack `.tar.lz4` package archives into working
directories, and pack directories into such archives
"""

import io
import logging
import shutil
import tarfile
from pathlib import Path
from typing import Tuple

import lz4.frame

from .errors import ArchiveError
from .models import LOCAL_SOURCE, PackageSpec
from .targets import current_target
from .transfer import ARCHIVE_SUFFIX, compute_checksum

logger = logging.getLogger(__name__)

PKGFILE_NAME = "PKGFILE"
_CHUNK_SIZE = 64 * 1024


def parse_archive_filename(filename: str) -> PackageSpec:
    """
    Derive a local PackageSpec from `name-version.tar.lz4`.

    Raises:
        ArchiveError: wrong extension or no version in the name
    """
    if not filename.endswith(ARCHIVE_SUFFIX):
        raise ArchiveError(f"{filename} is not a {ARCHIVE_SUFFIX} archive")

    stem = filename[:-len(ARCHIVE_SUFFIX)]
    name, sep, version = stem.rpartition("-")
    if not sep or not name or not version:
        raise ArchiveError(f"cannot read name and version from {filename}")

    return PackageSpec(
        repository=LOCAL_SOURCE,
        name=name,
        version=version,
        target=current_target()
    )


def cleanup_working_directory(path: Path):
    """Remove a working directory if present."""
    if path.exists():
        shutil.rmtree(path)
        logger.debug(f"Removed working directory {path}")


def _decompress(archive: Path, tar_path: Path):
    try:
        with lz4.frame.open(str(archive), "rb") as src, open(tar_path, "wb") as dst:
            shutil.copyfileobj(src, dst, _CHUNK_SIZE)
    except (RuntimeError, EOFError, OSError) as e:
        tar_path.unlink(missing_ok=True)
        raise ArchiveError(f"failed to decompress {archive.name}: {e}")


def _unpack(tar_path: Path, work_root: Path):
    try:
        with tarfile.open(tar_path, "r") as tar:
            tar.extractall(work_root, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise ArchiveError(f"failed to unpack {tar_path.name}: {e}")
    finally:
        tar_path.unlink(missing_ok=True)


def extract_package(
    archive: Path,
    work_root: Path,
    stem: str,
    keep_source: bool = False
) -> Path:
    """
    Unpack an archive into `<work_root>/<stem>`.

    Args:
        archive: The `.tar.lz4` file
        work_root: Temporary directory to unpack into
        stem: `name-version`; the archive's top-level directory
        keep_source: Leave the archive in place (user-supplied local files)

    Returns:
        Working directory holding the package contents

    Raises:
        ArchiveError: decode or unpack failure, or no `<stem>/` in the archive
    """
    work_root.mkdir(parents=True, exist_ok=True)
    tar_path = work_root / f"{stem}.tar"
    work_dir = work_root / stem

    try:
        _decompress(archive, tar_path)
    finally:
        if not keep_source:
            archive.unlink(missing_ok=True)

    # Leftovers from an interrupted run
    cleanup_working_directory(work_dir)
    _unpack(tar_path, work_root)

    if not work_dir.is_dir():
        raise ArchiveError(f"archive does not contain a {stem}/ directory")
    logger.info(f"Extracted {stem} to {work_dir}")
    return work_dir


def read_pkgfile(work_dir: Path) -> str:
    """Raw PKGFILE text of an extracted package."""
    path = work_dir / PKGFILE_NAME
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ArchiveError(f"package {work_dir.name} has no {PKGFILE_NAME}")
    except (OSError, UnicodeDecodeError) as e:
        raise ArchiveError(f"failed to read {path}: {e}")


def pack_directory(directory: Path, output_dir: Path) -> Tuple[Path, str]:
    """
    Build `<name>-<version>.tar.lz4` from a package directory.

    The directory name must be `name-version` and it must hold a PKGFILE.

    Returns:
        (archive path, sha256 checksum)
    """
    directory = Path(directory)
    if not (directory / PKGFILE_NAME).is_file():
        raise ArchiveError(f"{directory} has no {PKGFILE_NAME}")
    # Validates the directory name
    parse_archive_filename(directory.name + ARCHIVE_SUFFIX)

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        tar.add(directory, arcname=directory.name)
    data = lz4.frame.compress(buffer.getvalue())

    output_dir.mkdir(parents=True, exist_ok=True)
    archive = output_dir / f"{directory.name}{ARCHIVE_SUFFIX}"
    archive.write_bytes(data)
    logger.info(f"Packed {directory} into {archive}")
    return archive, compute_checksum(data)
