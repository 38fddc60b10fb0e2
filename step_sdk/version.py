"""
Version information for the Step SDK.

This module provides version information that can be imported by other modules.
"""

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)

RELEASE_STATUS = "beta"  # alpha, beta, rc, stable


def get_version() -> str:
    """Return the SDK version string."""
    return __version__


def get_full_version() -> str:
    """
    Get the version string including the release status.

    Returns:
        Version string such as "0.3.0-beta" (stable releases have no suffix)
    """
    if RELEASE_STATUS == "stable":
        return __version__
    return f"{__version__}-{RELEASE_STATUS}"
