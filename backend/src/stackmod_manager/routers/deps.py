"""Shared FastAPI dependencies used across routers."""

from fastapi import HTTPException
from sqlmodel import Session, select

from stackmod_manager.models.game import Game
from stackmod_manager.models.profile import Profile
from stackmod_manager.services.profile_service import get_profile


def get_game_or_404(game_name: str, session: Session) -> Game:
    """Look up a game by name, raising 404 if not found."""
    game = session.exec(select(Game).where(Game.name == game_name)).first()
    if not game:
        raise HTTPException(404, f"Game '{game_name}' not found")
    return game


def get_profile_or_404(game: Game, profile_id: int, session: Session) -> Profile:
    profile = get_profile(game, profile_id, session)
    if not profile:
        raise HTTPException(404, "Profile not found")
    return profile
