"""
Main API v1 router
Combines all handlers
"""
from fastapi import APIRouter

from inspection_ai.api.v1.handlers import analysis_handler, health_handler, mappings_handler

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(analysis_handler.router)
api_router.include_router(mappings_handler.router)
api_router.include_router(health_handler.router)
