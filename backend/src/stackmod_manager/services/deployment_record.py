"""Persisted list of paths touched by the last copy deploy of a game.

Each append is committed straight away: if the process dies halfway through
a deploy, the stored record still covers every path that reached the disk
and a later undeploy can reverse it.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from sqlalchemy import delete
from sqlmodel import Session, select

from stackmod_manager.models.deployment import DeployedPath

logger = logging.getLogger(__name__)


class AlreadyDeployedError(Exception):
    """The game already has a deployment recorded."""


class NotDeployedError(Exception):
    """The game has no deployment to reverse."""


class DeploymentRecordStore:
    def __init__(self, session: Session, game_id: int) -> None:
        self._session = session
        self._game_id = game_id
        self._paths: list[Path] | None = None

    def _recorded(self) -> list[Path]:
        if self._paths is None:
            rows = self._session.exec(
                select(DeployedPath)
                .where(DeployedPath.game_id == self._game_id)
                .order_by(DeployedPath.position)  # type: ignore[arg-type]
            ).all()
            self._paths = [Path(PurePosixPath(row.relative_path)) for row in rows]
        return self._paths

    def load(self) -> list[Path]:
        """Return the recorded paths in first-touched-first order."""
        return list(self._recorded())

    @property
    def is_deployed(self) -> bool:
        return bool(self.load())

    def append_if_absent(self, relative_path: Path) -> bool:
        """Record *relative_path* unless already present. Returns True if added."""
        paths = self._recorded()
        if relative_path in paths:
            return False
        self._session.add(
            DeployedPath(
                game_id=self._game_id,
                position=len(paths),
                relative_path=relative_path.as_posix(),
            )
        )
        self._session.commit()
        paths.append(relative_path)
        return True

    def clear_and_persist(self) -> None:
        stmt = delete(DeployedPath).where(DeployedPath.game_id == self._game_id)  # type: ignore[arg-type]
        self._session.exec(stmt)  # type: ignore[call-overload]
        self._session.commit()
        self._paths = []
        logger.info("Cleared deployment record for game %d", self._game_id)


def ensure_not_deployed(session: Session, game_id: int) -> None:
    """Refuse changes to what would be deployed while a deployment is live.

    Raises:
        AlreadyDeployedError: If the game currently has a deployment record.
    """
    if DeploymentRecordStore(session, game_id).is_deployed:
        raise AlreadyDeployedError("Game is currently deployed; undeploy first")
