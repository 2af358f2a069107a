# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Script Interpreter

Single responsibility: Parse PKGFILE documents and execute their install
and removal lines against the filesystem

PKGFILE layout:

    [data]
    key value

    [installation]
    install bin/tool $bin_dir/tool

    [win-installation]
    ...

    [removal]
    delete $bin_dir/tool

    [win-removal]
    ...
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ScriptError
from .models import Pkgfile
from .prompts import ConsoleUI
from .targets import is_windows

logger = logging.getLogger(__name__)

_SECTIONS = {
    "installation": "installation_lines",
    "win-installation": "win_installation_lines",
    "removal": "removal_lines",
    "win-removal": "win_removal_lines",
}


def parse_pkgfile(text: str) -> Pkgfile:
    """
    Parse PKGFILE text.

    Blank lines and `#` comments are skipped. Lines outside a known
    section are ignored.
    """
    pkgfile = Pkgfile()
    section = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip()
            continue

        if section == "data":
            key, _, value = line.partition(" ")
            pkgfile.data[key] = value.strip()
        elif section in _SECTIONS:
            getattr(pkgfile, _SECTIONS[section]).append(line)

    return pkgfile


def select_installation_lines(pkgfile: Pkgfile, windows: Optional[bool] = None) -> List[str]:
    """Windows uses the win- list wholesale when it has any lines."""
    windows = is_windows() if windows is None else windows
    if windows and pkgfile.win_installation_lines:
        return list(pkgfile.win_installation_lines)
    return list(pkgfile.installation_lines)


def select_removal_lines(pkgfile: Pkgfile, windows: Optional[bool] = None) -> List[str]:
    windows = is_windows() if windows is None else windows
    if windows and pkgfile.win_removal_lines:
        return list(pkgfile.win_removal_lines)
    return list(pkgfile.removal_lines)


class ScriptInterpreter:
    """Executes PKGFILE lines"""

    def __init__(self, bin_dir: Path, lib_dir: Path, home_dir: Path, ui: ConsoleUI):
        """
        Initialize script interpreter.

        Args:
            bin_dir: Value of $bin_dir
            lib_dir: Value of $lib_dir
            home_dir: Value of $home_dir
            ui: Where `system` output is shown
        """
        self.bin_dir = bin_dir
        self.lib_dir = lib_dir
        self.home_dir = home_dir
        self.ui = ui

    def substitute(self, line: str, data: Dict[str, str]) -> str:
        line = (
            line.replace("$bin_dir", str(self.bin_dir))
            .replace("$lib_dir", str(self.lib_dir))
            .replace("$home_dir", str(self.home_dir))
        )
        # Longest keys first so $name never eats part of $name_suffix
        for key in sorted(data, key=len, reverse=True):
            line = line.replace(f"${key}", data[key])
        return line

    def execute(
        self,
        lines: List[str],
        data: Optional[Dict[str, str]] = None,
        working_directory: Optional[Path] = None
    ):
        """
        Run script lines in order.

        Args:
            lines: PKGFILE lines, unsubstituted
            data: [data] substitutions
            working_directory: Extracted package; None for removal scripts

        Raises:
            ScriptError: unknown command, missing argument or I/O failure
        """
        data = data or {}
        for raw in lines:
            line = self.substitute(raw, data)
            tokens = line.split()
            if not tokens:
                continue
            command = tokens[0]
            logger.debug(f"Executing: {line}")

            if command in ("install", "copy"):
                self._copy(line, tokens, working_directory, executable=command == "install")
            elif command == "delete":
                self._delete(line, tokens)
            elif command == "system":
                self._system(line, working_directory)
            else:
                raise ScriptError(f"unrecognized command: {command}", line=line)

    def _copy(
        self,
        line: str,
        tokens: List[str],
        working_directory: Optional[Path],
        executable: bool
    ):
        if working_directory is None:
            logger.warning(f"Skipping '{line}': no package directory to copy from")
            return
        if len(tokens) < 3:
            raise ScriptError(f"{tokens[0]} needs a source and a destination", line=line)

        source = working_directory / tokens[1]
        destination = Path(" ".join(tokens[2:]))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(source, destination)
            if executable and not is_windows():
                target = destination / source.name if destination.is_dir() else destination
                os.chmod(target, 0o755)
        except OSError as e:
            raise ScriptError(f"failed to copy {source} to {destination}: {e}", line=line)

    def _delete(self, line: str, tokens: List[str]):
        if len(tokens) < 2:
            raise ScriptError("delete needs a path", line=line)
        path = Path(" ".join(tokens[1:]))
        try:
            path.unlink()
        except OSError as e:
            raise ScriptError(f"failed to delete {path}: {e}", line=line)

    def _system(self, line: str, working_directory: Optional[Path]):
        parts = line.split(None, 1)
        if len(parts) < 2:
            raise ScriptError("system needs a command", line=line)
        command = parts[1]
        argv = ["cmd.exe", "/C", command] if is_windows() else ["sh", "-c", command]

        try:
            result = subprocess.run(
                argv,
                cwd=working_directory,
                capture_output=True,
                text=True
            )
        except OSError as e:
            raise ScriptError(f"failed to run shell: {e}", line=line)

        if result.returncode == 0:
            if result.stdout:
                self.ui.show(result.stdout.rstrip("\n"))
        else:
            logger.warning(f"'{command}' exited with status {result.returncode}")
            if result.stderr:
                self.ui.warn(result.stderr.rstrip("\n"))
