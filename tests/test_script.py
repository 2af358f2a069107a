# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the PKGFILE Script Interpreter

Tests parsing, platform line selection, substitution and each command.
"""

import os
import sys
import pytest
from pathlib import Path

from satchel.errors import ScriptError
from satchel.models import Pkgfile
from satchel.script import (
    ScriptInterpreter,
    parse_pkgfile,
    select_installation_lines,
    select_removal_lines
)
from tests.conftest import ScriptedUI


SAMPLE_PKGFILE = """
# sample package
[data]
binary calc
description a small calculator

[installation]
install bin/$binary $bin_dir/$binary
copy share/readme.txt $lib_dir/calc/readme.txt

[win-installation]
install bin/$binary.exe $bin_dir/$binary.exe

[removal]
delete $bin_dir/$binary
delete $lib_dir/calc/readme.txt

[changelog]
not a command
"""


class TestParsePkgfile:
    """Test suite for PKGFILE parsing"""

    def test_sections(self):
        """Test lines are collected per section"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)

        assert pkgfile.installation_lines == [
            "install bin/$binary $bin_dir/$binary",
            "copy share/readme.txt $lib_dir/calc/readme.txt",
        ]
        assert pkgfile.win_installation_lines == ["install bin/$binary.exe $bin_dir/$binary.exe"]
        assert pkgfile.removal_lines == [
            "delete $bin_dir/$binary",
            "delete $lib_dir/calc/readme.txt",
        ]
        assert pkgfile.win_removal_lines == []

    def test_data_section(self):
        """Test [data] lines become key/value pairs"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)
        assert pkgfile.data == {"binary": "calc", "description": "a small calculator"}

    def test_unknown_section_ignored(self):
        """Test unknown sections contribute nothing"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)
        all_lines = (
            pkgfile.installation_lines + pkgfile.win_installation_lines
            + pkgfile.removal_lines + pkgfile.win_removal_lines
        )
        assert "not a command" not in all_lines

    def test_removal_only(self):
        """Test a PKGFILE with only removal lines"""
        pkgfile = parse_pkgfile("[removal]\ndelete $bin_dir/tool\n")
        assert pkgfile.installation_lines == []
        assert pkgfile.removal_lines == ["delete $bin_dir/tool"]

    def test_lines_before_header_ignored(self):
        """Test lines outside any section are dropped"""
        pkgfile = parse_pkgfile("install a b\n[installation]\ncopy c d\n")
        assert pkgfile.installation_lines == ["copy c d"]

    def test_whitespace_trimmed(self):
        """Test lines are stripped and blank lines skipped"""
        pkgfile = parse_pkgfile("  [installation]  \n\n   copy a b   \n")
        assert pkgfile.installation_lines == ["copy a b"]


class TestLineSelection:
    """Test suite for Windows line overrides"""

    def test_generic_lines_off_windows(self):
        """Test non-Windows platforms use the generic lists"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)
        assert select_installation_lines(pkgfile, windows=False) == pkgfile.installation_lines

    def test_windows_lines_replace_generic(self):
        """Test non-empty win- lists replace the generic list"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)
        assert select_installation_lines(pkgfile, windows=True) == pkgfile.win_installation_lines

    def test_empty_windows_lines_fall_back(self):
        """Test empty win- lists fall back to generic lines"""
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)
        assert select_removal_lines(pkgfile, windows=True) == pkgfile.removal_lines


class TestScriptInterpreter:
    """Test suite for executing PKGFILE lines"""

    @pytest.fixture
    def dirs(self, tmp_path):
        bin_dir = tmp_path / "bin"
        lib_dir = tmp_path / "lib"
        home_dir = tmp_path / "home"
        for directory in (bin_dir, lib_dir, home_dir):
            directory.mkdir()
        return bin_dir, lib_dir, home_dir

    @pytest.fixture
    def ui(self):
        return ScriptedUI()

    @pytest.fixture
    def interpreter(self, dirs, ui):
        bin_dir, lib_dir, home_dir = dirs
        return ScriptInterpreter(bin_dir, lib_dir, home_dir, ui)

    @pytest.fixture
    def work_dir(self, tmp_path):
        work_dir = tmp_path / "calc-0.1.0"
        (work_dir / "bin").mkdir(parents=True)
        (work_dir / "share").mkdir()
        (work_dir / "bin" / "calc").write_text("#!/bin/sh\necho 42\n")
        (work_dir / "share" / "readme.txt").write_text("readme")
        return work_dir

    def test_substitution(self, interpreter, dirs):
        """Test path placeholders then data keys are substituted"""
        bin_dir, lib_dir, home_dir = dirs
        line = interpreter.substitute("x $bin_dir $lib_dir $home_dir $name $name_long", {
            "name": "short",
            "name_long": "long",
        })
        assert line == f"x {bin_dir} {lib_dir} {home_dir} short long"

    def test_install_and_copy(self, interpreter, dirs, work_dir):
        """Test install copies and marks executable; copy only copies"""
        bin_dir, lib_dir, _ = dirs
        pkgfile = parse_pkgfile(SAMPLE_PKGFILE)

        interpreter.execute(pkgfile.installation_lines, pkgfile.data, work_dir)

        assert (bin_dir / "calc").read_text() == "#!/bin/sh\necho 42\n"
        assert (lib_dir / "calc" / "readme.txt").read_text() == "readme"
        if sys.platform != "win32":
            assert os.stat(bin_dir / "calc").st_mode & 0o777 == 0o755

    def test_delete(self, interpreter, dirs):
        """Test delete removes the file"""
        bin_dir, _, _ = dirs
        (bin_dir / "calc").write_text("x")

        interpreter.execute(["delete $bin_dir/calc"])

        assert not (bin_dir / "calc").exists()

    def test_delete_missing_file_is_fatal(self, interpreter):
        """Test delete of a missing file raises ScriptError"""
        with pytest.raises(ScriptError, match="failed to delete"):
            interpreter.execute(["delete $bin_dir/missing"])

    def test_copy_without_working_directory_skipped(self, interpreter, dirs):
        """Test install/copy are no-ops in removal scripts"""
        bin_dir, _, _ = dirs
        interpreter.execute(["install bin/calc $bin_dir/calc"])
        assert not (bin_dir / "calc").exists()

    def test_copy_missing_source_is_fatal(self, interpreter, work_dir):
        """Test copying a file the archive lacks raises ScriptError"""
        with pytest.raises(ScriptError):
            interpreter.execute(["copy bin/missing $bin_dir/missing"], working_directory=work_dir)

    def test_copy_missing_destination(self, interpreter, work_dir):
        """Test copy needs a source and a destination"""
        with pytest.raises(ScriptError, match="source and a destination"):
            interpreter.execute(["copy bin/calc"], working_directory=work_dir)

    def test_unknown_command(self, interpreter):
        """Test unrecognized commands are fatal"""
        with pytest.raises(ScriptError, match="unrecognized command: chmod"):
            interpreter.execute(["chmod 755 file"])

    def test_unknown_command_stops_script(self, interpreter, dirs, work_dir):
        """Test lines after a failing command do not run"""
        bin_dir, _, _ = dirs
        with pytest.raises(ScriptError):
            interpreter.execute(
                ["bogus", "install bin/calc $bin_dir/calc"],
                working_directory=work_dir
            )
        assert not (bin_dir / "calc").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="uses sh")
    def test_system_runs_in_working_directory(self, interpreter, ui, work_dir):
        """Test system runs through the shell in the package directory"""
        interpreter.execute(["system cat share/readme.txt && echo done"], working_directory=work_dir)
        assert ui.shown == ["readmedone"]

    @pytest.mark.skipif(sys.platform == "win32", reason="uses sh")
    def test_system_failure_is_not_fatal(self, interpreter, ui, dirs, work_dir):
        """Test non-zero exit shows stderr and continues"""
        bin_dir, _, _ = dirs
        interpreter.execute(
            ["system echo broken >&2; exit 3", "copy bin/calc $bin_dir/calc"],
            working_directory=work_dir
        )
        assert ui.warnings == ["broken"]
        assert (bin_dir / "calc").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="uses sh")
    def test_system_without_working_directory(self, interpreter, ui):
        """Test system in removal scripts runs in the current directory"""
        interpreter.execute(["system echo removed"])
        assert ui.shown == ["removed"]
