"""Union-mount lifecycle for game directories.

Mounting a target renames it aside to ``<target>~``, recreates an empty
directory in its place and mounts an overlay there whose lowest layer is
the renamed original. Unmounting reverses both steps. The session keeps
every target it mounted until that target is unmounted and restored, and
tears all of them down when its ``with`` block exits.

Between the rename and a confirmed mount the target's contents exist only
under ``<target>~``. A crash inside that window leaves the pair for
:func:`recover_stale_mount` to put back.

External tools are run to completion with no timeout; a hung tool hangs
the caller.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType

from stackmod_manager.constants import MOUNT_BACKUP_SUFFIX

logger = logging.getLogger(__name__)


class MountError(Exception):
    """A target could not be mounted."""

    def __init__(self, target: Path, message: str) -> None:
        super().__init__(f"{target}: {message}")
        self.target = target


class ExternalToolError(MountError):
    """The overlay or unmount tool could not be spawned or exited non-zero."""

    def __init__(self, target: Path, tool: str, message: str) -> None:
        super().__init__(target, f"{tool}: {message}")
        self.tool = tool


class UnmountError(Exception):
    """Some mounted targets could not be unmounted or restored."""

    def __init__(self, remaining: list[Path], failures: dict[Path, str]) -> None:
        detail = "; ".join(f"{path}: {reason}" for path, reason in failures.items())
        super().__init__(f"Failed to unmount {len(failures)} path(s): {detail}")
        self.remaining = remaining
        self.failures = failures


def backup_path_for(target: Path) -> Path:
    """Return the sibling that holds *target*'s original contents while mounted."""
    if not target.name:
        raise MountError(target, "path has no final component")
    return target.parent / (target.name + MOUNT_BACKUP_SUFFIX)


def _run_tool(target: Path, args: list[str]) -> None:
    tool = args[0]
    logger.debug("Running %s", args)
    try:
        result = subprocess.run(args, capture_output=True, text=True)
    except OSError as exc:
        raise ExternalToolError(target, tool, f"failed to spawn: {exc}") from exc
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ExternalToolError(target, tool, f"exited with {result.returncode}: {stderr}")


def _restore_backup(target: Path, backup: Path) -> None:
    """Move *backup* back onto *target*, replacing an empty mountpoint directory."""
    if target.is_dir() and not any(target.iterdir()):
        target.rmdir()
    backup.rename(target)


def recover_stale_mount(target: Path) -> bool:
    """Undo a rename-aside left behind by a process that died mid-mount.

    Only acts when ``<target>~`` exists, *target* is not a mount point and
    is missing or empty. Returns True if the original contents were put back.
    """
    backup = backup_path_for(target)
    if not backup.is_dir():
        return False
    if os.path.ismount(target):
        logger.warning("%s is still mounted; leaving %s in place", target, backup)
        return False
    if target.exists() and (not target.is_dir() or any(target.iterdir())):
        logger.warning("Both %s and %s hold data; not restoring", target, backup)
        return False
    _restore_backup(target, backup)
    logger.info("Recovered %s from stale backup %s", target, backup)
    return True


class MountSession:
    """Scoped owner of overlay mounts; use as a context manager."""

    def __init__(
        self,
        overlay_command: str = "fuse-overlayfs",
        unmount_command: str = "umount",
    ) -> None:
        self.overlay_command = overlay_command
        self.unmount_command = unmount_command
        self._active: list[Path] = []

    @property
    def active_mounts(self) -> list[Path]:
        return list(self._active)

    def __enter__(self) -> MountSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def mount(
        self,
        target: Path,
        lower_layers: Sequence[Path],
        upper: Path,
        work: Path,
    ) -> None:
        """Overlay *lower_layers* (highest priority first) onto *target*.

        The target's own contents become the lowest layer; writes land in
        *upper*.

        Raises:
            MountError: If the target cannot be set aside or recreated.
            ExternalToolError: If the overlay tool fails to run or succeed.
        """
        backup = backup_path_for(target)
        if not target.parent.is_dir():
            raise MountError(target, "parent directory does not exist")
        if not target.is_dir():
            raise MountError(target, "mount target is not an existing directory")
        if backup.exists():
            raise MountError(target, f"backup path {backup} already exists")

        try:
            upper.mkdir(parents=True, exist_ok=True)
            work.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MountError(target, f"cannot create upper/work directories: {exc}") from exc

        lowerdir = os.pathsep.join([*(str(p) for p in lower_layers), str(backup)])
        options = f"lowerdir={lowerdir},upperdir={upper},workdir={work}"

        try:
            target.rename(backup)
        except OSError as exc:
            logger.error("Failed to rename %s to %s", target, backup)
            raise MountError(target, f"failed to rename to {backup}: {exc}") from exc

        try:
            target.mkdir()
        except OSError as exc:
            self._roll_back(target, backup)
            raise MountError(target, f"failed to recreate mountpoint: {exc}") from exc

        try:
            _run_tool(target, [self.overlay_command, "-o", options, str(target)])
        except ExternalToolError:
            self._roll_back(target, backup)
            raise

        self._active.append(target)
        logger.info("Mounted %s", target)

    @staticmethod
    def _roll_back(target: Path, backup: Path) -> None:
        try:
            _restore_backup(target, backup)
        except OSError:
            logger.exception(
                "Could not restore %s from %s; original contents remain in %s",
                target,
                backup,
                backup,
            )

    def unmount_all(self) -> None:
        """Unmount every active target and move its original contents back.

        Targets whose unmount fails stay active so a later call can retry.

        Raises:
            UnmountError: Naming every path that failed.
        """
        if not self._active:
            logger.info("No paths to unmount")
            return

        logger.info("Unmounting %d path(s)", len(self._active))
        failures: dict[Path, str] = {}
        still_active: list[Path] = []
        for target in self._active:
            logger.info("--> %s", target)
            try:
                _run_tool(target, [self.unmount_command, str(target)])
            except ExternalToolError as exc:
                failures[target] = str(exc)
                still_active.append(target)
                continue

            try:
                _restore_backup(target, backup_path_for(target))
            except OSError as exc:
                logger.error("Unmounted %s but failed to restore it: %s", target, exc)
                failures[target] = f"failed to restore original contents: {exc}"

        self._active = still_active
        if failures:
            raise UnmountError(list(self._active), failures)

    def close(self) -> None:
        """Best-effort teardown: unmount everything, log what is left, never raise."""
        try:
            self.unmount_all()
        except UnmountError as exc:
            for path, reason in exc.failures.items():
                logger.error("Failed to unmount %s: %s", path, reason)
