"""Tests for mediaprobe package."""


def test_package_imports():
    """Test that the package can be imported successfully."""
    import mediaprobe

    assert mediaprobe.FFprobeIntrospector is not None


def test_package_version():
    """Test that the package has a version string."""
    from mediaprobe import __version__

    assert __version__ == "0.1.0"


def test_errors_share_a_base():
    """Every public error derives from MediaIntrospectionError."""
    import mediaprobe

    for name in (
        "InputNotFoundError",
        "ToolNotFoundError",
        "ProcessFailedError",
        "DecodeFailedError",
        "FormatMissingError",
        "ProbeCancelledError",
    ):
        assert issubclass(getattr(mediaprobe, name), mediaprobe.MediaIntrospectionError)
