"""Endpoints for profiles: create, delete, activate, and edit the mod load order."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from stackmod_manager.config import Settings, get_settings
from stackmod_manager.database import get_session
from stackmod_manager.routers.deps import get_game_or_404, get_profile_or_404
from stackmod_manager.schemas.profile import ModOrderUpdate, ProfileCreate, ProfileOut
from stackmod_manager.services.deployment_record import AlreadyDeployedError
from stackmod_manager.services.profile_service import (
    create_profile,
    delete_profile,
    disable_mod,
    enable_mod,
    list_profiles,
    profile_to_out,
    set_active_profile,
    set_mod_order,
)

router = APIRouter(prefix="/games/{game_name}/profiles", tags=["profiles"])


@router.get("/", response_model=list[ProfileOut])
def list_game_profiles(
    game_name: str,
    session: Session = Depends(get_session),
) -> list[ProfileOut]:
    """List all profiles for a game."""
    game = get_game_or_404(game_name, session)
    return [profile_to_out(game, p) for p in list_profiles(game, session)]


@router.post("/", response_model=ProfileOut, status_code=201)
def create_game_profile(
    game_name: str,
    data: ProfileCreate,
    session: Session = Depends(get_session),
) -> ProfileOut:
    """Create an empty profile."""
    game = get_game_or_404(game_name, session)
    try:
        profile = create_profile(game, data.name, session)
    except ValueError as exc:
        raise HTTPException(409, str(exc)) from exc
    return profile_to_out(game, profile)


@router.get("/{profile_id}", response_model=ProfileOut)
def get_game_profile(
    game_name: str,
    profile_id: int,
    session: Session = Depends(get_session),
) -> ProfileOut:
    game = get_game_or_404(game_name, session)
    return profile_to_out(game, get_profile_or_404(game, profile_id, session))


@router.delete("/{profile_id}", status_code=204)
def remove_profile(
    game_name: str,
    profile_id: int,
    session: Session = Depends(get_session),
) -> None:
    game = get_game_or_404(game_name, session)
    profile = get_profile_or_404(game, profile_id, session)
    try:
        delete_profile(game, profile, session)
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc


@router.post("/{profile_id}/activate", response_model=ProfileOut)
def activate_profile(
    game_name: str,
    profile_id: int,
    session: Session = Depends(get_session),
) -> ProfileOut:
    """Make this the profile that deploy and launch use."""
    game = get_game_or_404(game_name, session)
    profile = get_profile_or_404(game, profile_id, session)
    try:
        set_active_profile(game, profile, session)
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    return profile_to_out(game, profile)


@router.put("/{profile_id}/mods/{mod_name}", response_model=ProfileOut)
def enable_profile_mod(
    game_name: str,
    profile_id: int,
    mod_name: str,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ProfileOut:
    """Enable a mod at the end of the load order."""
    game = get_game_or_404(game_name, session)
    profile = get_profile_or_404(game, profile_id, session)
    try:
        enable_mod(game, profile, mod_name, settings, session)
    except FileNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    return profile_to_out(game, profile)


@router.delete("/{profile_id}/mods/{mod_name}", response_model=ProfileOut)
def disable_profile_mod(
    game_name: str,
    profile_id: int,
    mod_name: str,
    session: Session = Depends(get_session),
) -> ProfileOut:
    game = get_game_or_404(game_name, session)
    profile = get_profile_or_404(game, profile_id, session)
    try:
        disable_mod(game, profile, mod_name, session)
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    return profile_to_out(game, profile)


@router.put("/{profile_id}/mods", response_model=ProfileOut)
def reorder_profile_mods(
    game_name: str,
    profile_id: int,
    data: ModOrderUpdate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ProfileOut:
    """Replace the enabled mods with the given load order (lowest priority first)."""
    game = get_game_or_404(game_name, session)
    profile = get_profile_or_404(game, profile_id, session)
    try:
        set_mod_order(game, profile, data.mods, settings, session)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except AlreadyDeployedError as exc:
        raise HTTPException(409, str(exc)) from exc
    return profile_to_out(game, profile)
