from fastapi import APIRouter
from backend.app.api.v1.endpoints import activities, subscriptions

api_router = APIRouter()
api_router.include_router(activities.router)
api_router.include_router(subscriptions.router)
