# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Transfer & Verification

Single responsibility: Fetch repository documents and archives over HTTP
and verify archive checksums
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional

import httpx

from .errors import ChecksumMismatchError, TransferError
from .logging import log_event
from .models import PackageSpec

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.lz4"
INDEX_DOCUMENT = "repo.toml"
_SIZE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


def archive_url(base_url: str, spec: PackageSpec) -> str:
    """`<repo>/<target>/<name>/<name>-<version>.tar.lz4`"""
    return f"{base_url.rstrip('/')}/{spec.target}/{spec.name}/{spec.stem}{ARCHIVE_SUFFIX}"


def index_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{INDEX_DOCUMENT}"


def format_size(num_bytes: int) -> str:
    """Human-readable binary size, e.g. ``1.5 KiB``."""
    size = float(num_bytes)
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{num_bytes} B"


def compute_checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def verify_checksum(data: bytes, expected: str) -> bool:
    """Case-insensitive comparison of the SHA-256 of data to a hex digest."""
    return compute_checksum(data) == expected.strip().lower()


class Downloader:
    """Blocking HTTP client for index documents and package archives"""

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.Client] = None):
        """
        Initialize downloader.

        Args:
            timeout: Request timeout in seconds
            client: Pre-built client; a MockTransport client in tests
        """
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self):
        self.client.close()

    def fetch_text(self, url: str) -> str:
        """GET a text document."""
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransferError(f"failed to fetch {url}: {e}", url=url)
        return response.text

    def content_length(self, url: str) -> int:
        """
        HEAD the URL for its Content-Length.

        A missing or unparsable header counts as 0.
        """
        try:
            response = self.client.head(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransferError(f"failed to query {url}: {e}", url=url)

        try:
            return int(response.headers.get("content-length", 0))
        except ValueError:
            return 0

    def download(self, url: str, destination: Path) -> Path:
        """
        Stream the URL body to destination.

        A partially written file is removed before the error propagates.
        """
        logger.info(f"Downloading {url}")
        try:
            with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            destination.unlink(missing_ok=True)
            raise TransferError(f"failed to download {url}: {e}", url=url)
        return destination


def verify_archive(path: Path, name: str, expected: str):
    """
    Read the downloaded archive back and check it against the index.

    On mismatch the file is deleted and ChecksumMismatchError raised.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise TransferError(f"failed to read {path}: {e}")

    actual = compute_checksum(data)
    if actual != expected.strip().lower():
        path.unlink(missing_ok=True)
        log_event(
            logger, "checksum_mismatch", level="WARNING",
            package=name,
            expected=expected,
            actual=actual,
            path=str(path)
        )
        raise ChecksumMismatchError(name, expected, actual)
    logger.debug(f"Checksum verified for {name}")
