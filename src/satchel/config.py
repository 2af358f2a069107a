# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
satchel Configuration - Single source of truth.

YAML for tunables, TOML for the state files under the satchel root:
- rc.toml       configured repository sources
- lock.toml     installed packages
- repos/*.toml  synced repository indexes
"""

import os
import tempfile
import tomllib
import yaml
import tomli_w
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .models import SourcesConfig
from .targets import is_windows

ROOT_ENV = "SATCHEL_HOME"
LOG_LEVEL_ENV = "SATCHEL_LOG_LEVEL"


def _default_root() -> str:
    return os.getenv(ROOT_ENV) or str(Path.home() / ".satchel")


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable application configuration.
    State files derive from root_dir, install directories from home_dir;
    everything else from config.yaml.
    """

    # -- Paths --
    root_dir: str = field(default_factory=_default_root)
    home_dir: str = field(default_factory=lambda: str(Path.home()))
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    bin_path: Optional[str] = None
    lib_path: Optional[str] = None

    # -- HTTP --
    http_timeout: float = 30.0

    # -- Logging --
    log_level: str = "WARNING"
    log_format: str = "text"
    log_file: Optional[str] = None

    @property
    def root_path(self) -> Path:
        return Path(self.root_dir)

    @property
    def repos_dir(self) -> Path:
        return self.root_path / "repos"

    @property
    def bin_dir(self) -> Path:
        """
        Target of `$bin_dir`.

        ~/.local/bin on Unix, ~/Satchel/Binaries on Windows, unless
        `paths.bin` is configured.
        """
        if self.bin_path:
            return Path(self.bin_path)
        if is_windows():
            return Path(self.home_dir) / "Satchel" / "Binaries"
        return Path(self.home_dir) / ".local" / "bin"

    @property
    def lib_dir(self) -> Path:
        """Target of `$lib_dir`; shares the binaries directory on Windows."""
        if self.lib_path:
            return Path(self.lib_path)
        if is_windows():
            return Path(self.home_dir) / "Satchel" / "Binaries"
        return Path(self.home_dir) / ".local" / "lib"

    @property
    def sources_file(self) -> Path:
        return self.root_path / "rc.toml"

    @property
    def lock_file(self) -> Path:
        return self.root_path / "lock.toml"

    @property
    def transactions_file(self) -> Path:
        return self.root_path / "transactions.jsonl"

    def ensure_dirs(self):
        """Create the root, repos, bin and lib directories."""
        for directory in (self.root_path, self.repos_dir, self.bin_dir, self.lib_dir):
            directory.mkdir(parents=True, exist_ok=True)


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.

    Args:
        path: Config file; defaults to <root>/config.yaml
    """
    root = _default_root()
    path = Path(path) if path else Path(root) / "config.yaml"

    y = {}
    if path.exists():
        try:
            with open(path) as f:
                y = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid config file: {e}", path=str(path))
        if not isinstance(y, dict):
            raise ConfigurationError("config file must be a mapping", path=str(path))

    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    return Config(
        root_dir=root,
        temp_dir=get(y, "paths", "temp") or tempfile.gettempdir(),
        bin_path=get(y, "paths", "bin"),
        lib_path=get(y, "paths", "lib"),
        http_timeout=float(get(y, "http", "timeout") or 30.0),
        log_level=os.getenv(LOG_LEVEL_ENV) or get(y, "logging", "level") or "WARNING",
        log_format=get(y, "logging", "format") or "text",
        log_file=get(y, "logging", "file"),
    )


# =============================================================================
# SOURCES (rc.toml)
# =============================================================================

class SourcesConfigLoader:
    """Loads and saves the configured repository sources"""

    def __init__(self, sources_file: Path):
        self.sources_file = sources_file

    def load(self) -> SourcesConfig:
        """
        Load sources from rc.toml, creating an empty one when missing.

        Returns:
            Parsed sources config
        """
        if not self.sources_file.exists():
            sources = SourcesConfig()
            self.save(sources)
            return sources

        try:
            with open(self.sources_file, "rb") as f:
                data = tomllib.load(f)
            return SourcesConfig.model_validate(data)
        except (tomllib.TOMLDecodeError, ValueError) as e:
            raise ConfigurationError(
                f"failed to parse {self.sources_file.name}: {e}",
                path=str(self.sources_file)
            )

    def save(self, sources: SourcesConfig):
        """Atomically replace rc.toml."""
        self.sources_file.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.sources_file.with_suffix(".tmp")
        with open(temp_path, "wb") as f:
            tomli_w.dump(sources.model_dump(), f)
        temp_path.replace(self.sources_file)
