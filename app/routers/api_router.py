from fastapi import APIRouter
from app.routers import resumes, evaluations, chat

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(resumes.router, tags=["Resumes"])
api_router.include_router(evaluations.router, tags=["Evaluations"])
api_router.include_router(chat.router, tags=["Chat"])
