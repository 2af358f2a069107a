# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Platform Targets

Single responsibility: Name the running platform as `<arch>-<os>`
"""

import platform
import sys

ANY_TARGET = "any"

_ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "powerpc64le",
    "riscv64": "riscv64",
    "s390x": "s390x",
}


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return _ARCH_ALIASES.get(m, m or "unknown")


def normalize_os(sys_platform: str) -> str:
    if sys_platform.startswith("win"):
        return "windows"
    if sys_platform.startswith("darwin"):
        return "macos"
    if sys_platform.startswith("freebsd"):
        return "freebsd"
    if sys_platform.startswith("openbsd"):
        return "openbsd"
    if sys_platform.startswith("netbsd"):
        return "netbsd"
    return "linux"


def current_target() -> str:
    """Target identifier of the running interpreter, e.g. ``x86_64-linux``."""
    return f"{normalize_arch(platform.machine())}-{normalize_os(sys.platform)}"


def is_supported(target: str) -> bool:
    """A package target installs here if it is ours or ``any``."""
    return target == ANY_TARGET or target == current_target()


def is_windows() -> bool:
    return sys.platform.startswith("win")
