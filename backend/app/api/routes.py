"""
Main API router configuration.
"""

from fastapi import APIRouter
from app.api.endpoints import decisions, flowise_workflows

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(flowise_workflows.router, prefix="/flowise-workflows", tags=["flowise-workflows"])
api_router.include_router(decisions.router, prefix="/decisions", tags=["decisions"])
