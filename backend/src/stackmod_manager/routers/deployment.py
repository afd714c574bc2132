"""Endpoints for copy-based deployment of the active profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from stackmod_manager.config import Settings, get_settings
from stackmod_manager.database import get_session
from stackmod_manager.routers.deps import get_game_or_404
from stackmod_manager.schemas.deployment import DeploymentStatus, DeployResult, UndeployResult
from stackmod_manager.services.deploy_service import (
    deploy_game,
    deployment_status,
    undeploy_game,
)
from stackmod_manager.services.deployment_record import AlreadyDeployedError, NotDeployedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games/{game_name}/deployment", tags=["deployment"])


@router.get("/", response_model=DeploymentStatus)
def get_status(
    game_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> DeploymentStatus:
    """Report whether the game is deployed and what the deploy touched."""
    game = get_game_or_404(game_name, session)
    return deployment_status(session, game, settings)


@router.post("/deploy", response_model=DeployResult)
def deploy_active_profile(
    game_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> DeployResult:
    """Copy the active profile's mods into the game's data directory."""
    game = get_game_or_404(game_name, session)
    try:
        return deploy_game(session, game, settings)
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except OSError as exc:
        logger.exception("Deploy of %s failed partway", game.name)
        raise HTTPException(500, f"Deploy failed: {exc}") from exc


@router.post("/undeploy", response_model=UndeployResult)
def undeploy_game_files(
    game_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> UndeployResult:
    """Remove deployed files and restore anything the deploy displaced."""
    game = get_game_or_404(game_name, session)
    try:
        return undeploy_game(session, game, settings)
    except NotDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    except OSError as exc:
        logger.exception("Undeploy of %s failed", game.name)
        raise HTTPException(500, f"Undeploy failed: {exc}") from exc
