from stackmod_manager.models.deployment import DeployedPath
from stackmod_manager.models.game import Game
from stackmod_manager.models.profile import Profile, ProfileMod

__all__ = [
    "DeployedPath",
    "Game",
    "Profile",
    "ProfileMod",
]
