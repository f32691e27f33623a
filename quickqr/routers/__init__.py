# API routers for QuickQR

from fastapi import APIRouter

from .admin import router as admin_router
from .analytics import router as analytics_router
from .pages import router as pages_router
from .qr import router as qr_router

# Mounted under /api
api_router = APIRouter()
api_router.include_router(analytics_router, tags=['analytics'])
api_router.include_router(qr_router, tags=['qr'])

# Mounted at the root (HTML pages and the admin JSON endpoint)
page_router = APIRouter()
page_router.include_router(pages_router)
page_router.include_router(admin_router, tags=['admin'])
