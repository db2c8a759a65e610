"""Top-level package for the Marking Toolkit.

Provides subpackages:
- marking_toolkit.core – immutable models and definition schema
- marking_toolkit.marking – credit ledger, feedback interpreter, scopes and scoring
- marking_toolkit.parts – parts, questions, hooks and part types
- marking_toolkit.loading – build questions from JSON definitions
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

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

    try:
        from importlib.metadata import PackageNotFoundError, version as pkg_version
        return pkg_version("marking-toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__copyright__ = "Copyright 2026 Marking Toolkit contributors. Licensed under the Polyform Noncommercial License 1.0.0"
__all__: list[str] = ["__version__"]
