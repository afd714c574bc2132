"""Copy-based deployment of mod layers into a game directory.

Deploying copies every file of every enabled mod into the target directory,
in load order, so later mods overwrite earlier ones. Each path that is
created or overwritten goes into the deployment record; each pre-existing
(unmanaged) file that would be overwritten is first moved into the backup
vault. Undeploying walks the record backwards, deleting what was placed,
then moves the vault's contents back.

A deploy is not transactional. If it fails halfway, the record and the
vault describe exactly what was already changed, and ``undeploy`` reverses
that partial state.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator, Sequence
from pathlib import Path

from sqlmodel import Session

from stackmod_manager.config import Settings
from stackmod_manager.models.game import Game
from stackmod_manager.models.profile import Profile
from stackmod_manager.schemas.deployment import DeploymentStatus, DeployResult, UndeployResult
from stackmod_manager.services.backup_vault import BackupVault
from stackmod_manager.services.deployment_record import (
    AlreadyDeployedError,
    DeploymentRecordStore,
    NotDeployedError,
)
from stackmod_manager.services.game_paths import GamePaths
from stackmod_manager.services.mod_store import mods_dir_for
from stackmod_manager.services.path_resolver import resolve_case_insensitive
from stackmod_manager.services.profile_service import enabled_mod_names, get_active_profile

logger = logging.getLogger(__name__)


def _walk_tree(root: Path) -> Iterator[tuple[Path, bool]]:
    """Yield ``(path, is_dir)`` depth-first, each directory before its contents."""
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield path, True
            yield from _walk_tree(path)
        else:
            yield path, False


def snapshot_unmanaged(target_dir: Path) -> set[Path]:
    """Every path currently under *target_dir*, relative to it."""
    return {p.relative_to(target_dir) for p in target_dir.rglob("*")}


def deploy(
    target_dir: Path,
    mods_dir: Path,
    enabled_mods: Sequence[str],
    record: DeploymentRecordStore,
    vault: BackupVault,
) -> DeployResult:
    """Copy *enabled_mods* (load order, last wins) from *mods_dir* into *target_dir*.

    Raises:
        AlreadyDeployedError: If a deployment is recorded or the vault still holds files.
        FileNotFoundError: If the target or a mod directory is missing.
    """
    if record.is_deployed or not vault.is_empty():
        raise AlreadyDeployedError(f"{target_dir} is already deployed")

    if not enabled_mods:
        logger.info("No enabled mods; nothing to deploy")
        return DeployResult(
            mods_deployed=0,
            files_copied=0,
            directories_created=0,
            files_backed_up=0,
            deployed=False,
        )

    if not target_dir.is_dir():
        raise FileNotFoundError(f"Deploy target not found: {target_dir}")
    layer_dirs = [mods_dir / name for name in enabled_mods]
    for layer_dir in layer_dirs:
        if not layer_dir.is_dir():
            raise FileNotFoundError(f"Mod directory not found: {layer_dir}")

    unmanaged = snapshot_unmanaged(target_dir)
    files_copied = 0
    dirs_created = 0
    backed_up = 0

    for layer_dir in layer_dirs:
        logger.info("Deploying %s", layer_dir.name)
        for source, is_dir in _walk_tree(layer_dir):
            relative = resolve_case_insensitive(target_dir, source.relative_to(layer_dir))
            destination = target_dir / relative

            # Originals go to the vault first; every path is recorded before it is written.
            if is_dir:
                if destination.is_dir():
                    continue
                record.append_if_absent(relative)
                destination.mkdir()
                dirs_created += 1
                continue

            if destination.exists() and relative in unmanaged and not vault.contains(relative):
                vault.store(relative, destination)
                backed_up += 1

            record.append_if_absent(relative)
            logger.debug("%s -> %s", source.relative_to(layer_dir), relative)
            shutil.copy2(source, destination)
            files_copied += 1

    deployed = record.is_deployed
    logger.info(
        "Deployed %d mods to %s (%d files, %d dirs, %d backed up)",
        len(layer_dirs),
        target_dir,
        files_copied,
        dirs_created,
        backed_up,
    )
    return DeployResult(
        mods_deployed=len(layer_dirs),
        files_copied=files_copied,
        directories_created=dirs_created,
        files_backed_up=backed_up,
        deployed=deployed,
    )


def undeploy(
    target_dir: Path,
    record: DeploymentRecordStore,
    vault: BackupVault,
) -> UndeployResult:
    """Remove everything the last deploy placed and restore displaced files.

    Raises:
        NotDeployedError: If there is no deployment record and the vault is empty.
        OSError: If a recorded directory is no longer empty.
    """
    recorded = record.load()
    if not recorded and vault.is_empty():
        raise NotDeployedError(f"{target_dir} is not deployed")

    files_removed = 0
    dirs_removed = 0
    # Deeper paths were recorded after their parents, so reverse order
    # always empties a directory before reaching it.
    for relative in reversed(recorded):
        path = target_dir / relative
        if path.is_dir() and not path.is_symlink():
            path.rmdir()
            dirs_removed += 1
        elif path.exists() or path.is_symlink():
            path.unlink()
            files_removed += 1
        else:
            logger.warning("Deployed path already gone: %s", relative)

    record.clear_and_persist()
    restored = vault.restore_all(target_dir)

    logger.info(
        "Undeployed %s (%d files, %d dirs removed, %d restored)",
        target_dir,
        files_removed,
        dirs_removed,
        restored,
    )
    return UndeployResult(
        files_removed=files_removed,
        directories_removed=dirs_removed,
        files_restored=restored,
    )


def vault_for(game: Game, settings: Settings) -> BackupVault:
    return BackupVault(settings.backup_dir / game.domain_name)


def deploy_game(
    session: Session,
    game: Game,
    settings: Settings,
    profile: Profile | None = None,
) -> DeployResult:
    """Deploy a profile (the active one by default) into the game's data directory.

    Raises:
        ValueError: If the game has no active profile and none was given.
    """
    profile = profile or get_active_profile(game, session)
    if profile is None:
        raise ValueError(f"Game '{game.name}' has no active profile")

    return deploy(
        GamePaths.from_game(game).data_dir(),
        mods_dir_for(game, settings),
        enabled_mod_names(profile),
        DeploymentRecordStore(session, game.id),  # type: ignore[arg-type]
        vault_for(game, settings),
    )


def undeploy_game(session: Session, game: Game, settings: Settings) -> UndeployResult:
    return undeploy(
        GamePaths.from_game(game).data_dir(),
        DeploymentRecordStore(session, game.id),  # type: ignore[arg-type]
        vault_for(game, settings),
    )


def deployment_status(session: Session, game: Game, settings: Settings) -> DeploymentStatus:
    record = DeploymentRecordStore(session, game.id)  # type: ignore[arg-type]
    paths = record.load()
    backed_up = vault_for(game, settings).stored_paths()
    return DeploymentStatus(
        deployed=bool(paths) or bool(backed_up),
        target_dir=str(GamePaths.from_game(game).data_dir()),
        recorded_paths=[p.as_posix() for p in paths],
        backed_up_files=[p.as_posix() for p in backed_up],
    )
