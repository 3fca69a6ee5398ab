"""
Persistence of Flowise workflow records.
"""

import json
import time
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.flowise_workflow import FlowiseWorkflow
from app.schemas.flowise_workflow import (
    FlowiseWorkflowListItem,
    FlowiseWorkflowResponse,
    GeneratedWorkflow,
)
from app.services.flowise.converter import FlowiseConverter, calculate_max_depth
from app.services.flowise.flow_data import dump_flow_data, load_flow_data
from app.services.flowise.importer import ImportedTemplate
from app.utils.exceptions import WorkflowNotFoundError


class FlowiseWorkflowService:
    """Create, read and delete workflow records holding Flowise flow data."""

    async def save_generated(
        self,
        db: AsyncSession,
        flow: Dict[str, Any],
        generated: GeneratedWorkflow,
        workspace_id: str,
    ) -> FlowiseWorkflow:
        """Store a converted workflow and the metadata extracted from it."""
        flow_data = dump_flow_data(flow["nodes"], flow["edges"], flow.get("viewport"))
        fields = FlowiseConverter.build_record(flow, generated, workspace_id)

        record = FlowiseWorkflow(
            flowise_id=f"generated_{int(time.time() * 1000)}",
            flow_data=flow_data,
            **fields,
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)

        logger.info(f"Saved generated workflow '{record.name}' ({record.id}) for workspace {workspace_id}")
        return record

    async def save_imported(
        self,
        db: AsyncSession,
        template: ImportedTemplate,
        workspace_id: str,
    ) -> FlowiseWorkflow:
        """Store an imported template as a workflow record."""
        flow_data = dump_flow_data(template.nodes, template.edges, template.viewport)
        analysis = template.analysis

        record = FlowiseWorkflow(
            workspace_id=workspace_id,
            flowise_id=template.id,
            name=template.name,
            description=template.description,
            type=template.type.value,
            category=template.category,
            flow_data=flow_data,
            complexity_score=analysis.complexity_score,
            node_count=analysis.total_nodes,
            edge_count=analysis.total_edges,
            max_depth=calculate_max_depth({"nodes": template.nodes}),
            capabilities={
                "imported": True,
                "complexity": analysis.complexity.value,
                "patterns": list(analysis.patterns),
                "suggestedAgentType": template.zanai_mapping.suggested_agent_type.value,
            },
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)

        logger.info(f"Saved imported template '{record.name}' ({record.id}) for workspace {workspace_id}")
        return record

    async def get(self, db: AsyncSession, workflow_id: UUID) -> FlowiseWorkflow:
        result = await db.execute(
            select(FlowiseWorkflow).where(FlowiseWorkflow.id == workflow_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise WorkflowNotFoundError(str(workflow_id))
        return record

    async def list_workflows(
        self,
        db: AsyncSession,
        workspace_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[FlowiseWorkflow], int]:
        query = select(FlowiseWorkflow)
        if workspace_id is not None:
            query = query.where(FlowiseWorkflow.workspace_id == workspace_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = query.order_by(FlowiseWorkflow.created_at.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def delete(self, db: AsyncSession, workflow_id: UUID) -> None:
        record = await self.get(db, workflow_id)
        await db.delete(record)
        await db.commit()
        logger.info(f"Deleted workflow {workflow_id}")

    async def mark_published(
        self,
        db: AsyncSession,
        record: FlowiseWorkflow,
        remote: Dict[str, Any],
    ) -> FlowiseWorkflow:
        """Remember the remote chatflow id after publishing."""
        if remote.get("id"):
            record.flowise_id = str(remote["id"])
        record.deployed = True
        await db.commit()
        await db.refresh(record)
        return record

    @staticmethod
    def to_response(record: FlowiseWorkflow) -> FlowiseWorkflowResponse:
        item = FlowiseWorkflowListItem.model_validate(record)
        return FlowiseWorkflowResponse(
            **item.model_dump(),
            flow_data=load_flow_data(record.flow_data).to_flowise(),
        )

    @staticmethod
    def to_chatflow_payload(record: FlowiseWorkflow) -> Dict[str, Any]:
        """Body for the Flowise ``create chatflow`` call."""
        flow = load_flow_data(record.flow_data).to_flowise()
        return {
            "name": record.name,
            "flowData": json.dumps(flow),
            "deployed": False,
            "isPublic": record.is_public,
            "type": record.type,
            "category": record.category,
        }


flowise_workflow_service = FlowiseWorkflowService()
