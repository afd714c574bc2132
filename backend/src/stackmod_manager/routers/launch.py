"""Endpoint that runs a game inside an overlay mount session."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from stackmod_manager.config import Settings, get_settings
from stackmod_manager.database import get_session
from stackmod_manager.routers.deps import get_game_or_404
from stackmod_manager.schemas.launch import LaunchResult
from stackmod_manager.services.deployment_record import (
    AlreadyDeployedError,
    ensure_not_deployed,
)
from stackmod_manager.services.game_paths import GamePaths
from stackmod_manager.services.launcher import launch_game
from stackmod_manager.services.mount_session import ExternalToolError, MountError
from stackmod_manager.services.profile_service import enabled_layers, get_active_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games/{game_name}/launch", tags=["launch"])


@router.post("/", response_model=LaunchResult)
def launch(
    game_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> LaunchResult:
    """Mount the active profile over the game directories and run the game.

    Blocks until the game exits and its directories are unmounted.
    """
    game = get_game_or_404(game_name, session)
    profile = get_active_profile(game, session)
    if profile is None:
        raise HTTPException(400, f"Game '{game.name}' has no active profile")
    try:
        ensure_not_deployed(session, game.id)  # type: ignore[arg-type]
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc

    layers = enabled_layers(game, profile, settings)
    try:
        return launch_game(
            GamePaths.from_game(game), layers, game.launch_command, settings, game.domain_name
        )
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    except ExternalToolError as exc:
        logger.warning("Launch of %s failed: %s", game.name, exc)
        raise HTTPException(502, str(exc)) from exc
    except MountError as exc:
        raise HTTPException(409, str(exc)) from exc
