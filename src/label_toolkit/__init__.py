"""Top-level package for the label toolkit.

Provides subpackages:
- label_toolkit.core – crop region geometry and the error taxonomy
- label_toolkit.render – PDF loading and page rasterization
- label_toolkit.crop – cropping rasters and encoding images
- label_toolkit.export – bulk ZIP export of every page
- label_toolkit.presets – persisted crop templates
- label_toolkit.session – navigation, drag interaction and session state
- label_toolkit.detection – AI label suggestion bridge
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    # In a source checkout, read directly from pyproject.toml
    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"

    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.1.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    try:
        from importlib.metadata import PackageNotFoundError, version as pkg_version
        return pkg_version("label_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
