"""Path helpers for mod-relative paths.

Mod archives and FOMOD installers describe paths Windows-style
(``Textures\\Armor\\foo.dds``); on the POSIX host those must be split on
either separator before they can be joined onto a real directory.
"""

from pathlib import Path, PurePath


def split_relative(relative: str | PurePath) -> list[str]:
    """Split a mod-relative path into components, accepting ``/`` and ``\\``.

    Raises:
        ValueError: If the path is absolute or climbs out of its root.
    """
    raw = relative.as_posix() if isinstance(relative, PurePath) else relative
    if raw.startswith(("/", "\\")):
        raise ValueError(f"Expected a relative path, got {raw!r}")
    parts = [p for p in raw.replace("\\", "/").split("/") if p not in ("", ".")]
    if ".." in parts:
        raise ValueError(f"Relative path escapes its root: {raw!r}")
    return parts


def ensure_directory(path: Path) -> Path:
    """Create *path* (and parents) if missing and return it.

    Raises:
        NotADirectoryError: If *path* exists but is not a directory.
    """
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Path exists but is not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    return path
