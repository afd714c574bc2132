from fastapi import APIRouter

from stackmod_manager.routers.deployment import router as deployment_router
from stackmod_manager.routers.games import router as games_router
from stackmod_manager.routers.launch import router as launch_router
from stackmod_manager.routers.mods import router as mods_router
from stackmod_manager.routers.profiles import router as profiles_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(games_router)
api_router.include_router(mods_router)
api_router.include_router(profiles_router)
api_router.include_router(deployment_router)
api_router.include_router(launch_router)
