# matchup/api/v1/api.py

from fastapi import APIRouter
from matchup.api.v1.endpoints import games, health, notifications

# This is the main router for the v1 API.
# It will include all the specific endpoint routers.
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(games.router)
api_router.include_router(notifications.router)
