"""
Pydantic schemas for LLM-assisted decisions.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class AgentContext(BaseModel):
    """Agent the decision is being made for."""
    name: str
    type: str
    capabilities: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class DecisionRequest(BaseModel):
    """Request schema for a decision among options."""
    context: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=1)
    criteria: List[str] = Field(default_factory=list)
    agent_info: Optional[AgentContext] = None


class DecisionAlternative(BaseModel):
    option: str
    score: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class DecisionMetadata(BaseModel):
    processing_time_ms: int
    model_used: str
    tokens_used: int = 0


class DecisionResponse(BaseModel):
    """Structured decision returned by the LLM."""
    decision: str
    reasoning: str = ""
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    alternatives: List[DecisionAlternative] = Field(default_factory=list)
    metadata: Optional[DecisionMetadata] = None
