#!/usr/bin/env python3
"""
cache-table – setup configuration
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

In-process key/value cache with per-item TTL, access statistics and
lifecycle callbacks.
"""

import re
from pathlib import Path

from setuptools import setup, find_packages

ROOT = Path(__file__).parent
README = ROOT / "README.md"

# Read version from the package without importing it
_init = (ROOT / "cache_table" / "__init__.py").read_text(encoding="utf-8")
version = re.search(r'^__version__ = "([^"]+)"', _init, re.M).group(1)

# Read long description
long_description = ""
if README.exists():
    long_description = README.read_text(encoding="utf-8")

# --------------------------------------------------------------------------- #
# Production dependencies
# --------------------------------------------------------------------------- #
INSTALL_REQUIRES = [
    # Configuration
    "pydantic>=2.6.0,<3.0.0",
    "pydantic-settings>=2.3.0,<3.0.0",
    "PyYAML>=6.0,<7.0",

    # Monitoring
    "prometheus-client>=0.19.0,<1.0.0",

    # CLI
    "rich>=13.6.0,<15.0.0",
    "typer>=0.9.0,<1.0.0",
]

# Development dependencies
DEV_REQUIRES = [
    # Testing
    "pytest>=7.4.0,<9.0.0",
    "pytest-cov>=4.1.0,<6.0.0",

    # Code Quality
    "ruff>=0.4.0,<1.0.0",
    "mypy>=1.10.0,<2.0.0",
    "types-PyYAML>=6.0",
]

# --------------------------------------------------------------------------- #
# Setup configuration
# --------------------------------------------------------------------------- #
setup(
    name="cache-table",
    version=version,
    description="In-process key/value cache with per-item TTL and lifecycle callbacks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Cache Table Team",

    # Package configuration
    packages=find_packages(
        include=["cache_table", "cache_table.*"],
        exclude=["tests*", "docs*", "examples*", "scripts*"]
    ),
    include_package_data=True,

    # Python version requirement
    python_requires=">=3.11",

    # Dependencies
    install_requires=INSTALL_REQUIRES,
    extras_require={
        "dev": DEV_REQUIRES,
        "test": [
            "pytest>=7.4.0,<9.0.0",
            "pytest-cov>=4.1.0,<6.0.0",
        ],
    },

    # Console scripts
    entry_points={
        "console_scripts": [
            "cache-table=cache_table.cli:main",
        ],
    },

    # Classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: Pydantic",
        "Framework :: Pytest",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Monitoring",
        "Typing :: Typed",
    ],

    # Keywords
    keywords=[
        "cache", "ttl", "expiration", "in-memory", "thread-safe", "callbacks",
    ],

    # License
    license="Apache-2.0",

    zip_safe=False,
)
