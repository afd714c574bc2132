"""Per-game store of installed mods.

Every mod is a plain directory under ``<mods_dir>/<game domain>/<mod name>``;
the directory listing is the source of truth for what is installed. Mods
are read-only layers to deployment: installing and uninstalling happen here,
never during a deploy or mount.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from sqlmodel import Session, select

from stackmod_manager.archive.handler import open_archive
from stackmod_manager.config import Settings
from stackmod_manager.constants import DATA_FOLDER_NAME, FOMOD_FOLDER_NAME
from stackmod_manager.models.game import Game
from stackmod_manager.models.profile import Profile, ProfileMod
from stackmod_manager.services.deployment_record import ensure_not_deployed
from stackmod_manager.utils.paths import ensure_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModLayer:
    """A named, read-only mod tree."""

    name: str
    path: Path


def overlay_lower_dirs(layers: Iterable[ModLayer]) -> list[Path]:
    """Turn load-ordered layers into overlay lower dirs (highest priority first)."""
    return [layer.path for layer in reversed(list(layers))]


def mods_dir_for(game: Game, settings: Settings) -> Path:
    return ensure_directory(settings.mods_dir / game.domain_name)


def installed_mods(game: Game, settings: Settings) -> list[str]:
    return sorted(p.name for p in mods_dir_for(game, settings).iterdir() if p.is_dir())


def mod_installed(game: Game, settings: Settings, name: str) -> bool:
    return (mods_dir_for(game, settings) / name).is_dir()


def count_mod_files(game: Game, settings: Settings, name: str) -> int:
    return sum(1 for p in (mods_dir_for(game, settings) / name).rglob("*") if p.is_file())


def _validate_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid mod name: {name!r}")


def create_mod(game: Game, settings: Settings, name: str) -> Path:
    """Create an empty mod directory.

    Raises:
        ValueError: If the name is invalid or a mod of that name exists.
    """
    _validate_name(name)
    if mod_installed(game, settings, name):
        raise ValueError(f"Mod '{name}' is already installed")
    path = mods_dir_for(game, settings) / name
    path.mkdir()
    logger.info("Created mod '%s'", name)
    return path


def find_mod_root(extracted: Path, archive_stem: str) -> Path:
    """Descend through wrapper folders that only hold the real payload.

    A lone subdirectory named after the archive or ``Data`` is stepped into,
    repeatedly, so ``MyMod/Data/textures`` installs as ``textures``.
    """
    root = extracted
    while True:
        entries = list(root.iterdir())
        if len(entries) != 1 or not entries[0].is_dir():
            return root
        name = entries[0].name.casefold()
        if name not in (archive_stem.casefold(), DATA_FOLDER_NAME.casefold()):
            return root
        root = entries[0]


def _has_fomod(mod_root: Path) -> bool:
    return any(
        p.name.casefold() == FOMOD_FOLDER_NAME and p.is_dir() for p in mod_root.iterdir()
    )


def install_mod_from_directory(game: Game, settings: Settings, source: Path, name: str) -> int:
    """Copy an unpacked mod tree into the store. Returns the number of files copied.

    Raises:
        FileNotFoundError: If *source* is not a directory.
        ValueError: If the name is invalid or already installed.
    """
    if not source.is_dir():
        raise FileNotFoundError(f"Mod source directory not found: {source}")
    _validate_name(name)
    if mod_installed(game, settings, name):
        raise ValueError(f"Mod '{name}' is already installed. Uninstall first to reinstall.")

    destination = mods_dir_for(game, settings) / name
    shutil.copytree(source, destination)
    copied = sum(1 for p in destination.rglob("*") if p.is_file())
    logger.info("Installed '%s' (%d files)", name, copied)
    return copied


def install_mod(
    game: Game,
    settings: Settings,
    archive_path: Path,
    name: str | None = None,
) -> tuple[str, int]:
    """Unpack an archive and install its payload as a mod.

    The mod name defaults to the archive's stem. Returns ``(name, files)``.

    Raises:
        FileNotFoundError: If the archive doesn't exist.
        ValueError: If the mod is already installed or ships a FOMOD installer.
    """
    if not archive_path.is_file():
        raise FileNotFoundError(f"Archive not found: {archive_path}")

    mod_name = name or archive_path.stem
    _validate_name(mod_name)
    if mod_installed(game, settings, mod_name):
        raise ValueError(f"Mod '{mod_name}' is already installed. Uninstall first to reinstall.")

    with tempfile.TemporaryDirectory(prefix="stackmod-") as tmpdir:
        extracted = Path(tmpdir)
        with open_archive(archive_path, settings.sevenzip_command) as archive:
            archive.extract_all(extracted)

        mod_root = find_mod_root(extracted, archive_path.stem)
        if _has_fomod(mod_root):
            raise ValueError(
                "FOMOD installer detected. Run the FOMOD installer and install "
                "its selected files from a directory instead."
            )
        files = install_mod_from_directory(game, settings, mod_root, mod_name)

    return mod_name, files


def uninstall_mod(game: Game, settings: Settings, session: Session, name: str) -> None:
    """Remove a mod from every profile of the game and delete its files.

    Raises:
        FileNotFoundError: If the mod is not installed.
        AlreadyDeployedError: If the game is currently deployed.
    """
    if not mod_installed(game, settings, name):
        raise FileNotFoundError(f"Mod '{name}' is not installed")
    ensure_not_deployed(session, game.id)  # type: ignore[arg-type]

    rows = session.exec(
        select(ProfileMod)
        .join(Profile, ProfileMod.profile_id == Profile.id)  # type: ignore[arg-type]
        .where(Profile.game_id == game.id, ProfileMod.mod_name == name)
    ).all()
    for row in rows:
        session.delete(row)
    session.commit()

    shutil.rmtree(mods_dir_for(game, settings) / name)
    logger.info("Uninstalled '%s' (removed from %d profiles)", name, len(rows))
