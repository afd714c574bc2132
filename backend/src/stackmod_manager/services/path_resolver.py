"""Case-insensitive destination path resolution.

The game expects Windows semantics, so ``textures/Foo.dds`` from a mod must
land on an existing ``Textures/`` directory rather than create a sibling
that differs only by case.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from stackmod_manager.utils.paths import split_relative


class PathResolutionError(OSError):
    """An existing directory under the resolution root could not be listed."""


def _match_entry(directory: Path, component: str) -> str | None:
    wanted = component.casefold()
    try:
        with os.scandir(directory) as entries:
            names = sorted(entry.name for entry in entries)
    except OSError as exc:
        raise PathResolutionError(f"Cannot list directory {directory}: {exc}") from exc
    if component in names:
        return component
    for name in names:
        if name.casefold() == wanted:
            return name
    return None


def resolve_case_insensitive(root: Path, relative: str | PurePath) -> Path:
    """Return *relative* re-cased to match what already exists under *root*.

    Each component adopts the on-disk casing of a case-insensitive match.
    After the first component with no match (or once the accumulated prefix
    is not a directory) the remaining components are passed through as
    given. Nothing on disk is modified.

    Raises:
        PathResolutionError: If an existing prefix directory cannot be read.
        ValueError: If *relative* is absolute or contains ``..``.
    """
    result = Path()
    path_exists = True
    for component in split_relative(relative):
        if path_exists:
            prefix = root / result
            matched = _match_entry(prefix, component) if prefix.is_dir() else None
            if matched is None:
                path_exists = False
            else:
                component = matched
        result = result / component
    return result
