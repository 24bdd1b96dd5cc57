"""
API router - aggregates all route modules.
"""
from fastapi import APIRouter
from portal.api.bookings import router as bookings_router
from portal.api.files import router as files_router
from portal.api.health import router as health_router
from portal.api.messages import router as messages_router
from portal.api.servicem8 import router as servicem8_router

api_router = APIRouter()
api_router.include_router(bookings_router)
api_router.include_router(messages_router)
api_router.include_router(files_router)
api_router.include_router(servicem8_router)
api_router.include_router(health_router)
