"""
Pytest configuration and fixtures for backend tests.
"""

import json
from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.core.database import Base, get_db
from app.models.agent import Agent


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an HTTP client bound to the app, without running its lifespan."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def chat_template() -> dict:
    """A small Flowise chatflow export: chat model with buffer memory."""
    return json.loads((FIXTURES_DIR / "conversation_chain.json").read_text(encoding="utf-8"))


@pytest.fixture
def generated_workflow_payload() -> dict:
    """A generated workflow covering every node kind the converter knows."""
    return {
        "name": "Support triage",
        "description": "Routes support tickets",
        "nodes": [
            {"id": "start_1", "type": "StartNode", "name": "Start", "description": "Ticket in"},
            {"id": "llm_2", "type": "LLMNode", "name": "Classifier", "config": {"temperature": 0}},
            {"id": "cond_3", "type": "ConditionNode", "name": "Is urgent"},
            {"id": "tool_4", "type": "ToolNode", "name": "Pager", "config": {"toolName": "pagerduty"}},
            {"id": "par_5", "type": "ParallelNode", "name": "Fan out", "config": {"waitForAll": False}},
            {"id": "end_6", "type": "EndNode", "name": "Done"},
        ],
        "edges": [
            {"source": "start_1", "target": "llm_2"},
            {"source": "llm_2", "target": "cond_3"},
            {"source": "cond_3", "target": "tool_4"},
            {"source": "tool_4", "target": "par_5"},
            {"source": "par_5", "target": "end_6"},
        ],
        "agents": [],
        "complexity": "medium",
        "estimatedTime": "5 minutes",
    }


@pytest.fixture
async def test_agent(db_session: AsyncSession) -> Agent:
    """Create a test agent."""
    agent = Agent(
        workspace_id="ws-1",
        name="Research Agent",
        description="Finds papers",
        config='{"model": "gpt-4"}',
    )
    db_session.add(agent)
    await db_session.commit()
    await db_session.refresh(agent)
    return agent
