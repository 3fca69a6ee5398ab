"""
API endpoints for Flowise workflows.

Provides:
- Template import (analysis + Zanai mapping, optionally persisted)
- Export of generated workflows to Flowise format, optionally published
- Workflow record listing, retrieval, re-analysis and deletion
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.flowise_workflow import (
    FlowiseExportRequest,
    FlowiseExportResponse,
    FlowiseImportResponse,
    FlowiseWorkflowListItem,
    FlowiseWorkflowListResponse,
    FlowiseWorkflowResponse,
)
from app.services.agent_lookup import DatabaseAgentLookup
from app.services.flowise.converter import FlowiseConverter
from app.services.flowise.importer import flowise_template_importer
from app.services.flowise_client import FlowiseClient
from app.services.flowise_workflow_service import flowise_workflow_service


router = APIRouter()


async def get_flowise_client():
    """Yield a Flowise API client for the duration of one request."""
    client = FlowiseClient()
    try:
        yield client
    finally:
        await client.close()


@router.post("/import", response_model=FlowiseImportResponse)
async def import_template(
    template_data: Any = Body(..., description="Flowise export with nodes and edges"),
    persist: bool = Query(False, description="Store the template as a workflow record"),
    workspace_id: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Analyze a Flowise template and suggest a Zanai agent configuration."""
    template = flowise_template_importer.import_from_object(template_data)

    workflow_id = None
    if persist:
        record = await flowise_workflow_service.save_imported(
            db, template, workspace_id or "default"
        )
        workflow_id = record.id

    return FlowiseImportResponse(template=template.to_dict(), workflow_id=workflow_id)


@router.post("/export", response_model=FlowiseExportResponse, status_code=201)
async def export_workflow(
    export_request: FlowiseExportRequest,
    db: AsyncSession = Depends(get_db),
    flowise_client: FlowiseClient = Depends(get_flowise_client),
):
    """Convert a generated workflow to Flowise format and store it."""
    generated = export_request.generated_workflow
    converter = FlowiseConverter(agent_lookup=DatabaseAgentLookup(db))

    flow = await converter.convert(generated)
    record = await flowise_workflow_service.save_generated(
        db, flow, generated, export_request.workspace_id
    )

    published = False
    if export_request.publish:
        remote = await flowise_client.create_chatflow(
            flowise_workflow_service.to_chatflow_payload(record)
        )
        record = await flowise_workflow_service.mark_published(db, record, remote)
        published = True
        logger.info(f"Published workflow {record.id} as Flowise chatflow {record.flowise_id}")

    return FlowiseExportResponse(
        workflow=flowise_workflow_service.to_response(record),
        published=published,
    )


@router.get("", response_model=FlowiseWorkflowListResponse)
async def list_workflows(
    workspace_id: Optional[str] = Query(None, description="Filter by workspace"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List stored workflow records without their flow data."""
    records, total = await flowise_workflow_service.list_workflows(
        db, workspace_id=workspace_id, limit=limit, offset=offset
    )
    return FlowiseWorkflowListResponse(
        workflows=[FlowiseWorkflowListItem.model_validate(r) for r in records],
        total=total,
    )


@router.get("/{workflow_id}", response_model=FlowiseWorkflowResponse)
async def get_workflow(
    workflow_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a workflow record with its parsed Flowise graph."""
    record = await flowise_workflow_service.get(db, workflow_id)
    return flowise_workflow_service.to_response(record)


@router.get("/{workflow_id}/analysis")
async def analyze_workflow(
    workflow_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Re-run the template analysis over a stored workflow."""
    record = await flowise_workflow_service.get(db, workflow_id)
    flow = flowise_workflow_service.to_response(record).flow_data
    template = flowise_template_importer.import_from_object(flow)
    return {
        "workflow_id": str(record.id),
        "analysis": template.analysis.to_dict(),
        "zanaiMapping": template.zanai_mapping.to_dict(),
        "type": template.type.value,
        "category": template.category,
    }


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(
    workflow_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a workflow record. The remote chatflow, if any, is left untouched."""
    await flowise_workflow_service.delete(db, workflow_id)
