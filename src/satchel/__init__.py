# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
satchel - user-level package manager

Modular structure:
- config.py: Configuration and rc.toml sources
- index.py: Repository indexes (sync, add, remove, query)
- resolver.py: Package spec resolution
- transfer.py: Downloads and checksum verification
- archive.py: .tar.lz4 unpacking and packing
- script.py: PKGFILE parsing and execution
- lockfile.py: Installed packages (lock.toml)
- transactions.py: Transaction journal
- operations.py: Get/install/upgrade/remove
- service.py: Composes the modules above
"""

from .service import PackageManagerService

__version__ = "1.0.0"

__all__ = ["PackageManagerService", "__version__"]
