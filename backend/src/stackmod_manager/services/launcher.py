"""Run a game with its mods overlaid on the data, config and appdata directories."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence

from stackmod_manager.config import Settings
from stackmod_manager.schemas.launch import LaunchResult
from stackmod_manager.services.game_paths import GameDirectories
from stackmod_manager.services.mod_store import ModLayer, overlay_lower_dirs
from stackmod_manager.services.mount_session import (
    ExternalToolError,
    MountSession,
    recover_stale_mount,
)

logger = logging.getLogger(__name__)


def mount_game(
    session: MountSession,
    paths: GameDirectories,
    layers: Sequence[ModLayer],
    settings: Settings,
    domain_name: str,
) -> None:
    """Mount the data directory with *layers* and redirect config/appdata writes.

    *layers* are in load order (lowest priority first). Upper and work
    directories live under the game's *domain_name*.
    """
    work_root = settings.overlay_work_dir / domain_name
    configs_root = settings.configs_dir / domain_name
    session.mount(
        paths.data_dir(),
        overlay_lower_dirs(layers),
        settings.overwrite_dir / domain_name,
        work_root / "Data",
    )

    config_dir = paths.config_dir()
    if config_dir is not None:
        session.mount(config_dir, [], configs_root / "Config", work_root / "Config")

    appdata_dir = paths.appdata_dir()
    if appdata_dir is not None:
        session.mount(appdata_dir, [], configs_root / "AppData", work_root / "AppData")


def launch_game(
    paths: GameDirectories,
    layers: Sequence[ModLayer],
    launch_command: str,
    settings: Settings,
    domain_name: str,
) -> LaunchResult:
    """Mount everything, run *launch_command* to completion, then tear down.

    Raises:
        ValueError: If no launch command is configured.
        MountError: If any directory cannot be mounted.
        ExternalToolError: If the game process cannot be started.
    """
    if not launch_command.strip():
        raise ValueError("No launch command configured for this game")

    targets = [paths.data_dir(), paths.config_dir(), paths.appdata_dir()]
    for target in targets:
        if target is not None:
            recover_stale_mount(target)

    with MountSession(settings.overlay_command, settings.unmount_command) as session:
        mount_game(session, paths, layers, settings, domain_name)
        mounted = [str(p) for p in session.active_mounts]

        logger.info("Starting game: %s", launch_command)
        args = shlex.split(launch_command)
        try:
            result = subprocess.run(args, cwd=paths.install_dir())
        except OSError as exc:
            raise ExternalToolError(paths.install_dir(), args[0], f"failed to spawn: {exc}") from exc
        exit_code = result.returncode
        logger.info("Game stopped (exit %d)", exit_code)

    return LaunchResult(exit_code=exit_code, mounted_paths=mounted)
