"""
Agent database model.

Agents are thin wrappers around an LLM prompt. The Flowise bridge only reads
them: custom workflow nodes embed the referenced agent's name and config.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class Agent(Base):
    """Agent owned by a workspace."""

    __tablename__ = "agents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    workspace_id = Column(String(100), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Serialized agent configuration as authored in the UI (JSON or YAML text)
    config = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_agents_workspace_id", "workspace_id"),
    )

    def __repr__(self):
        return f"<Agent(id={self.id}, name='{self.name}')>"
