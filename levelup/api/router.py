from fastapi import APIRouter

from levelup.api.routes import analytics, auth, categories, chapters, chat, health, progress, team

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(categories.router)
api_router.include_router(chapters.router)
api_router.include_router(chapters.shared_router)
api_router.include_router(progress.router)
api_router.include_router(chat.router)
api_router.include_router(analytics.router)
api_router.include_router(team.router)
