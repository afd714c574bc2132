"""Profiles: named, ordered lists of enabled mods for a game.

A profile lists its mods in load order, lowest priority first. The copy
deploy walks them in that order (later mods overwrite earlier ones); the
overlay mount reverses them because overlay lower dirs are first-wins.
The active profile cannot change while the game is deployed.
"""

from __future__ import annotations

import logging

from sqlmodel import Session, select

from stackmod_manager.config import Settings
from stackmod_manager.models.game import Game
from stackmod_manager.models.profile import Profile, ProfileMod
from stackmod_manager.schemas.profile import ProfileOut
from stackmod_manager.services.deployment_record import ensure_not_deployed
from stackmod_manager.services.mod_store import ModLayer, mod_installed, mods_dir_for

logger = logging.getLogger(__name__)


def list_profiles(game: Game, session: Session) -> list[Profile]:
    return list(
        session.exec(select(Profile).where(Profile.game_id == game.id).order_by(Profile.name)).all()
    )


def get_profile(game: Game, profile_id: int, session: Session) -> Profile | None:
    profile = session.get(Profile, profile_id)
    if not profile or profile.game_id != game.id:
        return None
    return profile


def get_active_profile(game: Game, session: Session) -> Profile | None:
    if game.active_profile_id is None:
        return None
    return get_profile(game, game.active_profile_id, session)


def _guard_active(game: Game, profile: Profile, session: Session) -> None:
    if game.active_profile_id == profile.id:
        ensure_not_deployed(session, game.id)  # type: ignore[arg-type]


def create_profile(game: Game, name: str, session: Session) -> Profile:
    """Create an empty profile; the first profile of a game becomes active.

    Raises:
        ValueError: If the name is empty or already used for this game.
    """
    if not name.strip():
        raise ValueError("Profile name must not be empty")
    existing = session.exec(
        select(Profile).where(Profile.game_id == game.id, Profile.name == name)
    ).first()
    if existing:
        raise ValueError(f"Profile '{name}' already exists")

    profile = Profile(game_id=game.id, name=name)  # type: ignore[arg-type]
    session.add(profile)
    session.flush()
    if game.active_profile_id is None:
        game.active_profile_id = profile.id
        session.add(game)
    session.commit()
    session.refresh(profile)
    logger.info("Created profile '%s' for %s", name, game.name)
    return profile


def set_active_profile(game: Game, profile: Profile, session: Session) -> None:
    ensure_not_deployed(session, game.id)  # type: ignore[arg-type]
    game.active_profile_id = profile.id
    session.add(game)
    session.commit()
    logger.info("Active profile for %s is now '%s'", game.name, profile.name)


def delete_profile(game: Game, profile: Profile, session: Session) -> None:
    _guard_active(game, profile, session)
    if game.active_profile_id == profile.id:
        remaining = [p for p in list_profiles(game, session) if p.id != profile.id]
        game.active_profile_id = remaining[0].id if remaining else None
        session.add(game)
    session.delete(profile)
    session.commit()
    logger.info("Deleted profile '%s'", profile.name)


def enabled_mod_names(profile: Profile) -> list[str]:
    return [entry.mod_name for entry in sorted(profile.mods, key=lambda m: m.position)]


def enabled_layers(game: Game, profile: Profile, settings: Settings) -> list[ModLayer]:
    """Return the profile's mods as layers, lowest priority first."""
    root = mods_dir_for(game, settings)
    return [ModLayer(name=name, path=root / name) for name in enabled_mod_names(profile)]


def enable_mod(
    game: Game, profile: Profile, name: str, settings: Settings, session: Session
) -> Profile:
    """Append a mod to the end of the load order (highest priority).

    Raises:
        FileNotFoundError: If the mod is not installed.
        AlreadyDeployedError: If this is the active profile of a deployed game.
    """
    if not mod_installed(game, settings, name):
        raise FileNotFoundError(f"Mod '{name}' is not installed")
    _guard_active(game, profile, session)

    names = enabled_mod_names(profile)
    if name not in names:
        position = max((m.position for m in profile.mods), default=-1) + 1
        session.add(ProfileMod(profile_id=profile.id, mod_name=name, position=position))  # type: ignore[arg-type]
        session.commit()
        session.refresh(profile)
    return profile


def disable_mod(game: Game, profile: Profile, name: str, session: Session) -> Profile:
    _guard_active(game, profile, session)
    for entry in list(profile.mods):
        if entry.mod_name == name:
            session.delete(entry)
    session.commit()
    session.refresh(profile)
    return profile


def set_mod_order(
    game: Game, profile: Profile, names: list[str], settings: Settings, session: Session
) -> Profile:
    """Replace the profile's enabled mods with *names*, in that load order.

    Raises:
        ValueError: If *names* contains duplicates.
        FileNotFoundError: If any mod is not installed.
    """
    if len(set(names)) != len(names):
        raise ValueError("Mod order contains duplicates")
    missing = [n for n in names if not mod_installed(game, settings, n)]
    if missing:
        raise FileNotFoundError(f"Mods not installed: {', '.join(missing)}")
    _guard_active(game, profile, session)

    for entry in list(profile.mods):
        session.delete(entry)
    session.flush()
    for position, name in enumerate(names):
        session.add(ProfileMod(profile_id=profile.id, mod_name=name, position=position))  # type: ignore[arg-type]
    session.commit()
    session.refresh(profile)
    return profile


def profile_to_out(game: Game, profile: Profile) -> ProfileOut:
    return ProfileOut(
        id=profile.id,  # type: ignore[arg-type]
        name=profile.name,
        game_id=profile.game_id,
        created_at=profile.created_at,
        is_active=game.active_profile_id == profile.id,
        mods=enabled_mod_names(profile),
    )
