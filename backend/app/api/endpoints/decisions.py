"""
API endpoint for LLM-assisted decisions.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from app.schemas.decision import DecisionRequest, DecisionResponse
from app.services.decision_service import DecisionService, get_decision_service


router = APIRouter()


@router.post("", response_model=DecisionResponse)
async def make_decision(
    decision_request: DecisionRequest,
    decision_service: DecisionService = Depends(get_decision_service),
):
    """Pick the best of the given options for an agent."""
    logger.info(f"Decision requested over {len(decision_request.options)} options")
    return await decision_service.make_decision(decision_request)
