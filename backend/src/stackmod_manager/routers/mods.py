"""Endpoints for the per-game mod store: list, create, install, uninstall."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from stackmod_manager.archive.handler import ExtractionError
from stackmod_manager.config import Settings, get_settings
from stackmod_manager.constants import SUPPORTED_ARCHIVE_EXTENSIONS
from stackmod_manager.database import get_session
from stackmod_manager.routers.deps import get_game_or_404
from stackmod_manager.schemas.mod import ModCreate, ModInstallRequest, ModInstallResult, ModOut
from stackmod_manager.services.deployment_record import AlreadyDeployedError
from stackmod_manager.services.mod_store import (
    count_mod_files,
    create_mod,
    install_mod,
    installed_mods,
    uninstall_mod,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games/{game_name}/mods", tags=["mods"])


@router.get("/", response_model=list[ModOut])
def list_mods(
    game_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> list[ModOut]:
    """List installed mods for a game."""
    game = get_game_or_404(game_name, session)
    return [
        ModOut(name=name, file_count=count_mod_files(game, settings, name))
        for name in installed_mods(game, settings)
    ]


@router.post("/", response_model=ModOut, status_code=201)
def create_empty_mod(
    game_name: str,
    data: ModCreate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ModOut:
    """Create an empty mod directory to fill by hand."""
    game = get_game_or_404(game_name, session)
    try:
        create_mod(game, settings, data.name)
    except ValueError as exc:
        raise HTTPException(409, str(exc)) from exc
    return ModOut(name=data.name, file_count=0)


@router.post("/install", response_model=ModInstallResult, status_code=201)
def install_archive(
    game_name: str,
    data: ModInstallRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ModInstallResult:
    """Unpack an archive into the mod store."""
    game = get_game_or_404(game_name, session)
    archive_path = Path(data.archive_path)
    if archive_path.suffix.lower() not in SUPPORTED_ARCHIVE_EXTENSIONS:
        raise HTTPException(400, f"Unsupported archive format: {archive_path.suffix}")
    try:
        name, files = install_mod(game, settings, archive_path, data.name)
    except FileNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(409, str(exc)) from exc
    except ExtractionError as exc:
        logger.warning("Extraction failed for %s: %s", data.archive_path, exc)
        raise HTTPException(502, str(exc)) from exc
    return ModInstallResult(name=name, files_installed=files)


@router.delete("/{mod_name}", status_code=204)
def remove_mod(
    game_name: str,
    mod_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> None:
    """Uninstall a mod and drop it from every profile."""
    game = get_game_or_404(game_name, session)
    try:
        uninstall_mod(game, settings, session, mod_name)
    except FileNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
