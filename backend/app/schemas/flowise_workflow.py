"""
Pydantic schemas for Flowise workflow import/export.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Generated workflow (export input)
# =============================================================================

class GeneratedNode(BaseModel):
    """A node decided by the workflow generator."""
    id: str = Field(..., min_length=1)
    type: str = Field(..., description="StartNode, EndNode, LLMNode, ToolNode, CustomNode, ConditionNode or ParallelNode")
    name: str
    description: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)


class GeneratedEdge(BaseModel):
    """A directed edge between generated nodes."""
    source: str
    target: str
    type: str = "default"


class GeneratedWorkflow(BaseModel):
    """Workflow description produced by the generator, before layout."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    nodes: List[GeneratedNode] = Field(default_factory=list)
    edges: List[GeneratedEdge] = Field(default_factory=list)
    agents: List[str] = Field(default_factory=list)
    complexity: Literal["simple", "medium", "complex"] = "simple"
    estimated_time: str = Field("", alias="estimatedTime")


class FlowiseExportRequest(BaseModel):
    """Request schema for exporting a generated workflow."""
    workspace_id: str = Field(..., min_length=1, max_length=100)
    generated_workflow: GeneratedWorkflow
    publish: bool = Field(False, description="Also create the chatflow on the remote Flowise instance")


# =============================================================================
# Workflow records
# =============================================================================

class FlowiseWorkflowListItem(BaseModel):
    """Workflow record without the flow-data blob."""
    id: UUID
    workspace_id: str
    flowise_id: str
    name: str
    description: Optional[str] = None
    type: str
    category: Optional[str] = None
    deployed: bool
    is_public: bool
    complexity_score: int
    node_count: int
    edge_count: int
    max_depth: int
    capabilities: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FlowiseWorkflowResponse(FlowiseWorkflowListItem):
    """Workflow record with its parsed Flowise graph."""
    flow_data: Dict[str, Any] = Field(default_factory=dict)


class FlowiseWorkflowListResponse(BaseModel):
    """Response schema for listing workflow records."""
    workflows: List[FlowiseWorkflowListItem]
    total: int


class FlowiseExportResponse(BaseModel):
    """Response schema for an exported workflow."""
    workflow: FlowiseWorkflowResponse
    published: bool = False


class FlowiseImportResponse(BaseModel):
    """Response schema for an imported template."""
    template: Dict[str, Any]
    workflow_id: Optional[UUID] = None
