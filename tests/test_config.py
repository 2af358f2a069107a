# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for Configuration, Logging and Errors
"""

import json
import logging
import pytest
from dataclasses import FrozenInstanceError

from satchel.config import Config, SourcesConfigLoader, load_config
from satchel.errors import (
    AlreadyUpToDateError,
    ConfigurationError,
    FatalError,
    NothingToDo,
    PackageNotFoundError,
    UserInputError
)
from satchel.logging import JSONFormatter, get_logger, log_event
from satchel.models import RepoSource
from satchel.targets import ANY_TARGET, current_target, is_supported, normalize_arch, normalize_os


class TestLoadConfig:
    """Test suite for load_config"""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """Test defaults when config.yaml is absent"""
        monkeypatch.setenv("SATCHEL_HOME", str(tmp_path / "root"))
        monkeypatch.delenv("SATCHEL_LOG_LEVEL", raising=False)

        config = load_config()

        assert config.root_path == tmp_path / "root"
        assert config.lock_file == tmp_path / "root" / "lock.toml"
        assert config.http_timeout == 30.0
        assert config.log_level == "WARNING"

    def test_yaml_values(self, tmp_path, monkeypatch):
        """Test values are read from YAML"""
        monkeypatch.delenv("SATCHEL_LOG_LEVEL", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "paths:\n  temp: /var/tmp/satchel\n"
            "http:\n  timeout: 5\n"
            "logging:\n  level: DEBUG\n  format: json\n"
        )

        config = load_config(path)

        assert config.temp_dir == "/var/tmp/satchel"
        assert config.http_timeout == 5.0
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_env_log_level_wins(self, tmp_path, monkeypatch):
        """Test SATCHEL_LOG_LEVEL overrides YAML"""
        monkeypatch.setenv("SATCHEL_LOG_LEVEL", "ERROR")
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\n")

        assert load_config(path).log_level == "ERROR"

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML is a ConfigurationError"""
        path = tmp_path / "config.yaml"
        path.write_text("paths: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_install_dirs_unix(self, tmp_path, monkeypatch):
        """Test bin and lib default to ~/.local on Unix"""
        monkeypatch.setattr("satchel.config.is_windows", lambda: False)
        config = Config(root_dir=str(tmp_path / "root"), home_dir=str(tmp_path / "home"))

        assert config.bin_dir == tmp_path / "home" / ".local" / "bin"
        assert config.lib_dir == tmp_path / "home" / ".local" / "lib"

    def test_install_dirs_windows(self, tmp_path, monkeypatch):
        """Test bin and lib share one directory under home on Windows"""
        monkeypatch.setattr("satchel.config.is_windows", lambda: True)
        config = Config(root_dir=str(tmp_path / "root"), home_dir=str(tmp_path / "home"))

        assert config.bin_dir == tmp_path / "home" / "Satchel" / "Binaries"
        assert config.lib_dir == config.bin_dir

    def test_install_dirs_from_yaml(self, tmp_path, monkeypatch):
        """Test paths.bin and paths.lib override the platform defaults"""
        monkeypatch.delenv("SATCHEL_LOG_LEVEL", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(f"paths:\n  bin: {tmp_path / 'b'}\n  lib: {tmp_path / 'l'}\n")

        config = load_config(path)

        assert config.bin_dir == tmp_path / "b"
        assert config.lib_dir == tmp_path / "l"

    def test_ensure_dirs(self, config):
        """Test ensure_dirs creates the satchel layout"""
        config.ensure_dirs()
        for directory in (config.repos_dir, config.bin_dir, config.lib_dir):
            assert directory.is_dir()

    def test_config_is_frozen(self, config):
        """Test Config is immutable"""
        with pytest.raises(FrozenInstanceError):
            config.log_level = "DEBUG"


class TestSourcesConfigLoader:
    """Test suite for rc.toml handling"""

    def test_missing_file_created_empty(self, tmp_path):
        """Test a missing rc.toml is created with no repositories"""
        loader = SourcesConfigLoader(tmp_path / "rc.toml")

        assert loader.load().repos == []
        assert "repos = []" in (tmp_path / "rc.toml").read_text()

    def test_round_trip(self, tmp_path):
        """Test saved sources load back"""
        loader = SourcesConfigLoader(tmp_path / "rc.toml")
        sources = loader.load()
        sources.sources.repos.append(RepoSource(name="testing", url="https://example.com/testing"))
        loader.save(sources)

        assert loader.load().get("testing").url == "https://example.com/testing"

    def test_malformed(self, tmp_path):
        """Test malformed rc.toml is a ConfigurationError"""
        (tmp_path / "rc.toml").write_text("[sources\n")
        with pytest.raises(ConfigurationError, match="rc.toml"):
            SourcesConfigLoader(tmp_path / "rc.toml").load()


class TestTargets:
    """Test suite for platform targets"""

    @pytest.mark.parametrize("machine, expected", [
        ("AMD64", "x86_64"),
        ("x86_64", "x86_64"),
        ("arm64", "aarch64"),
        ("i686", "x86"),
    ])
    def test_normalize_arch(self, machine, expected):
        """Test architecture aliases"""
        assert normalize_arch(machine) == expected

    @pytest.mark.parametrize("sys_platform, expected", [
        ("linux", "linux"),
        ("darwin", "macos"),
        ("win32", "windows"),
        ("freebsd14", "freebsd"),
    ])
    def test_normalize_os(self, sys_platform, expected):
        """Test OS names"""
        assert normalize_os(sys_platform) == expected

    def test_is_supported(self):
        """Test only our target and 'any' are supported"""
        assert is_supported(current_target())
        assert is_supported(ANY_TARGET)
        assert not is_supported("sparc-plan9")


class TestLogging:
    """Test suite for structured logging"""

    def test_json_formatter_includes_extra_fields(self):
        """Test extra fields are merged into the JSON record"""
        record = logging.LogRecord("satchel.test", logging.INFO, __file__, 1, "installed", None, None)
        record.package = "calc"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "installed"
        assert data["level"] == "INFO"
        assert data["package"] == "calc"

    def test_get_logger_replaces_handlers(self, tmp_path):
        """Test repeated configuration does not stack handlers"""
        get_logger("satchel.test", log_file=tmp_path / "log.txt")
        logger = get_logger("satchel.test", log_file=tmp_path / "log.txt")
        assert len(logger.handlers) == 2

    def test_log_event_writes_fields(self, tmp_path):
        """Test log_event passes fields through to the file"""
        log_file = tmp_path / "events.log"
        logger = get_logger("satchel.events", log_level="INFO", log_format="json", log_file=log_file)

        log_event(logger, "package_installed", package="calc", version="0.1.0")
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text().strip())
        assert data["message"] == "package_installed"
        assert data["version"] == "0.1.0"


class TestErrors:
    """Test suite for the error taxonomy"""

    def test_categories(self):
        """Test errors fall into their reporting categories"""
        assert isinstance(PackageNotFoundError("x"), UserInputError)
        assert isinstance(ConfigurationError("x"), FatalError)
        assert isinstance(AlreadyUpToDateError("x", "1"), NothingToDo)

    def test_non_zero_exit(self):
        """Test every category exits non-zero"""
        assert AlreadyUpToDateError("calc", "0.1.1").exit_code == 1

    def test_to_dict(self):
        """Test errors serialize for structured logs"""
        data = PackageNotFoundError("calc").to_dict()
        assert data["error"] == "PackageNotFoundError"
        assert data["message"] == "package not found: calc"
