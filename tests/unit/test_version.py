"""
Unit tests for version information.
"""

import step_sdk
from step_sdk.version import __version__, __version_info__, get_full_version, get_version


class TestVersion:
    """Tests for version helpers."""

    def test_version_matches_info(self):
        assert __version__ == ".".join(str(part) for part in __version_info__)

    def test_get_version(self):
        assert get_version() == __version__
        assert step_sdk.__version__ == __version__

    def test_full_version_starts_with_version(self):
        assert get_full_version().startswith(__version__)
