"""Path resolution utilities for rule-set locations."""

import os
from pathlib import Path


def normalize_path(path: str) -> str:
    """Convert any path to canonical forward slash format.

    Args:
        path: Path with any separator format

    Returns:
        Path with forward slashes only

    Examples:
        >>> normalize_path("rules\\\\books.sch")
        'rules/books.sch'
        >>> normalize_path("rules/books.sch")
        'rules/books.sch'
    """
    if not path:
        return path

    return path.replace("\\", "/")


def resolve_location(location: str | Path, base_dir: str | Path | None = None) -> Path:
    """Resolve a rule-set location to an absolute path.

    Absolute locations are kept as given; relative ones are resolved against
    base_dir, or the current directory when no base is configured. Separators
    are only normalized where the platform separator is a backslash.

    Args:
        location: Absolute or base-relative rule-set location
        base_dir: Directory relative locations are resolved against

    Returns:
        Absolute path (the file is not required to exist)
    """
    location = str(location)
    # A backslash is a legal file name character on POSIX
    if os.sep == "\\":
        location = normalize_path(location)
    path = Path(location).expanduser()
    if not path.is_absolute():
        base = Path(base_dir).expanduser() if base_dir is not None else Path.cwd()
        path = base / path
    return path.absolute()
