from fastapi import APIRouter

from portfolio.api.auth import router as auth_router
from portfolio.api.data import router as data_router
from portfolio.api.uploads import router as uploads_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(data_router)
api_router.include_router(uploads_router)
