"""Tests for package-level functionality."""

import waitup


def test_package_imports() -> None:
    """Verify the package imports correctly."""
    from waitup import __version__

    assert __version__
    assert isinstance(__version__, str)


def test_version_format() -> None:
    """Verify the version follows expected format."""
    from waitup import __version__

    # Version should be either a proper semver or dev version
    parts = __version__.split(".")
    assert len(parts) >= 2, f"Version should have at least major.minor: {__version__}"


def test_public_api_is_exported() -> None:
    """Every name in __all__ resolves on the package."""
    for name in waitup.__all__:
        assert hasattr(waitup, name), name
