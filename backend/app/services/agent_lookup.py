"""
Agent lookup used when emitting custom nodes that wrap an agent.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Protocol
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.agent import Agent


@dataclass(frozen=True)
class AgentInfo:
    name: str
    description: Optional[str]
    config: Optional[str]


class AgentLookup(Protocol):
    async def get_agent(self, agent_id: str) -> Optional[AgentInfo]:
        ...


class DatabaseAgentLookup:
    """Resolve agents from the relational store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_agent(self, agent_id: str) -> Optional[AgentInfo]:
        try:
            agent_uuid = UUID(str(agent_id))
        except ValueError:
            logger.debug(f"Agent id {agent_id!r} is not a UUID, skipping lookup")
            return None

        result = await self.db.execute(
            select(Agent).where(Agent.id == agent_uuid)
        )
        agent = result.scalar_one_or_none()
        if agent is None:
            return None
        return AgentInfo(name=agent.name, description=agent.description, config=agent.config)


class StaticAgentLookup:
    """In-memory lookup, for callers that already hold the agent records."""

    def __init__(self, agents: Optional[Dict[str, AgentInfo]] = None):
        self.agents = dict(agents or {})

    async def get_agent(self, agent_id: str) -> Optional[AgentInfo]:
        return self.agents.get(str(agent_id))
