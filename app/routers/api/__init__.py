from fastapi import APIRouter

from app.routers.api import admin, books, catalog, goals, stats

router = APIRouter(prefix="/api")
router.include_router(admin.router)
router.include_router(books.router)
router.include_router(catalog.router)
router.include_router(goals.router)
router.include_router(stats.router)
