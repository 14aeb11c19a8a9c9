# api/__init__.py

from fastapi import APIRouter

from .model import router as model_router
from .portal import router as portal_router
from .predict import router as predict_router

api_router = APIRouter()
api_router.include_router(predict_router, tags=["prediction"])
api_router.include_router(model_router, prefix="/model", tags=["model"])

__all__ = ["api_router", "portal_router"]
