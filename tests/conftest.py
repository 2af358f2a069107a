# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides an isolated satchel root per test, a scripted stand-in for the
console prompts, and fake HTTP repositories served through
httpx.MockTransport.
"""

import pytest
import httpx
import tomli_w
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

from satchel.archive import pack_directory
from satchel.config import Config
from satchel.service import PackageManagerService
from satchel.targets import current_target


DEFAULT_PKGFILE = """\
[installation]
install bin/{name} $bin_dir/{name}

[removal]
delete $bin_dir/{name}
"""


# ============================================================================
# Prompts
# ============================================================================

class ScriptedUI:
    """
    Answers confirmation and choice prompts from queues.

    Confirmations default to yes once the queue is empty.
    """

    def __init__(self, confirms: Optional[List[bool]] = None, choices: Optional[List[str]] = None):
        self.confirms = list(confirms or [])
        self.choices = list(choices or [])
        self.confirm_prompts: List[str] = []
        self.choice_options: List[List[str]] = []
        self.shown: List[str] = []
        self.warnings: List[str] = []

    def confirm(self, message: str) -> bool:
        self.confirm_prompts.append(message)
        if self.confirms:
            return self.confirms.pop(0)
        return True

    def choose(self, message: str, options: List[str]) -> str:
        self.choice_options.append(list(options))
        return self.choices.pop(0)

    def show(self, message: str = ""):
        self.shown.append(message)

    def show_lines(self, header: str, lines: List[str]):
        self.shown.append(header)
        self.shown.extend(lines)

    def warn(self, message: str):
        self.warnings.append(message)


# ============================================================================
# Fake repositories
# ============================================================================

class FakeRepository:
    """A repository served over MockTransport, built from real .tar.lz4 archives"""

    def __init__(self, name: str, base_url: str, build_dir: Path):
        self.name = name
        self.base_url = base_url
        self.prefix = urlparse(base_url).path.rstrip("/")
        self.build_dir = build_dir
        self.packages: List[Dict] = []
        self.archives: Dict[str, bytes] = {}
        self.requests: List[tuple] = []

    def publish(
        self,
        name: str,
        version: str,
        pkgfile: Optional[str] = None,
        files: Optional[Dict[str, str]] = None,
        target: Optional[str] = None,
        current: bool = True,
        checksum: Optional[str] = None
    ) -> bytes:
        """Build an archive, serve it, and list it in the index."""
        target = target or current_target()
        files = files if files is not None else {f"bin/{name}": f"#!/bin/sh\necho {name} {version}\n"}

        source = self.build_dir / "src" / f"{name}-{version}"
        for relative, content in files.items():
            path = source / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        source.mkdir(parents=True, exist_ok=True)
        (source / "PKGFILE").write_text(pkgfile if pkgfile is not None else DEFAULT_PKGFILE.format(name=name))

        archive, digest = pack_directory(source, self.build_dir / "out")
        data = archive.read_bytes()
        self.archives[f"{self.prefix}/{target}/{name}/{name}-{version}.tar.lz4"] = data

        entry = next((p for p in self.packages if p["name"] == name and p["target"] == target), None)
        if entry is None:
            entry = {
                "name": name,
                "target": target,
                "versions": [],
                "author": "Test Author",
                "description": f"{name} for tests",
                "url": f"https://example.com/{name}",
            }
            self.packages.append(entry)
        entry["versions"].append({"tag": version, "checksum": checksum or digest})
        if current:
            entry["current"] = version
        return data

    def index_toml(self) -> str:
        return tomli_w.dumps({
            "repo": {
                "name": self.name,
                "maintainer": "Test Maintainer",
                "description": f"{self.name} repository",
            },
            "index": {"packages": self.packages},
        })

    def handle(self, request: httpx.Request) -> Optional[httpx.Response]:
        path = request.url.path
        if not path.startswith(self.prefix + "/"):
            return None
        self.requests.append((request.method, path))

        if path == f"{self.prefix}/repo.toml":
            return httpx.Response(200, text=self.index_toml())
        if path in self.archives:
            data = self.archives[path]
            if request.method == "HEAD":
                return httpx.Response(200, headers={"content-length": str(len(data))})
            return httpx.Response(200, content=data)
        return httpx.Response(404)


def mock_client(*repositories: FakeRepository) -> httpx.Client:
    """httpx client whose transport serves the given repositories."""

    def handler(request: httpx.Request) -> httpx.Response:
        for repository in repositories:
            response = repository.handle(request)
            if response is not None:
                return response
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler))


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config(tmp_path):
    """Config rooted entirely under tmp_path."""
    return Config(
        root_dir=str(tmp_path / "root"),
        home_dir=str(tmp_path / "home"),
        temp_dir=str(tmp_path / "tmp"),
    )


@pytest.fixture
def ui():
    return ScriptedUI()


@pytest.fixture
def repository(tmp_path):
    return FakeRepository("testing", "https://repo.example.com/testing", tmp_path / "build-testing")


@pytest.fixture
def make_service(config, ui):
    """Build a PackageManagerService talking to fake repositories."""
    services = []

    def _make(*repositories: FakeRepository) -> PackageManagerService:
        service = PackageManagerService(config, ui=ui, http_client=mock_client(*repositories))
        services.append(service)
        return service

    yield _make

    for service in services:
        service.close()
