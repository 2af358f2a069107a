# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the satchel user-level package manager
"""

from setuptools import setup, find_packages

setup(
    name="satchel",
    version="1.0.0",
    description="User-level package manager for .tar.lz4 archives served from TOML repositories",
    author="Jason Cafarelli",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.25.0",
        "lz4>=4.0.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "tomli-w>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "satchel=satchel.cli:main",
        ]
    },
)
