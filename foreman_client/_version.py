"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Version information for Foreman Client.

Reads the version from the VERSION file at the repository root, falling back
to the installed distribution metadata.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

def get_version() -> str:
    """
    Read version from VERSION file.
    
    Returns:
        str: The version string (e.g., "1.0.0")
    """
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    try:
        return version("foreman-client")
    except PackageNotFoundError:
        return "unknown"

__version__ = get_version()
