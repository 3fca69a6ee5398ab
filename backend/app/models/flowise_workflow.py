"""
Flowise workflow database model.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, Index, JSON
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class FlowiseWorkflow(Base):
    """
    Workflow stored in Flowise node/edge format.

    ``flow_data`` is an opaque, versioned JSON blob (see
    ``app.services.flowise.flow_data``); the scalar columns are extracted
    from it when the record is written so listings never parse the blob.
    """

    __tablename__ = "flowise_workflows"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    workspace_id = Column(String(100), nullable=False)

    # Identifier on the remote Flowise instance (or a local placeholder)
    flowise_id = Column(String(100), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="CHATFLOW")  # CHATFLOW, AGENTFLOW, MULTIAGENT, ASSISTANT
    category = Column(String(100), nullable=True)

    flow_data = Column(Text, nullable=False)

    deployed = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)

    complexity_score = Column(Integer, default=0, nullable=False)
    node_count = Column(Integer, default=0, nullable=False)
    edge_count = Column(Integer, default=0, nullable=False)
    max_depth = Column(Integer, default=0, nullable=False)

    # {"aiGenerated": true, "workflowType": "medium", "estimatedTime": "...", "agentCount": 2}
    capabilities = Column(JSON, nullable=True, default=dict)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_flowise_workflows_workspace_id", "workspace_id"),
        Index("ix_flowise_workflows_flowise_id", "flowise_id"),
    )

    def __repr__(self):
        return f"<FlowiseWorkflow(id={self.id}, name='{self.name}', type='{self.type}')>"
