"""
Versioned schema for the persisted ``flow_data`` blob.

Workflow records keep their graph as one JSON text column. Every blob
written by this service carries a ``schemaVersion`` tag and is validated
against the matching model when read back, so legacy or corrupted blobs
fail at the boundary instead of deep inside the analyzer.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.utils.exceptions import FlowDataSchemaError


CURRENT_SCHEMA_VERSION = 1


class Position(BaseModel):
    x: Union[int, float]
    y: Union[int, float]


class Viewport(BaseModel):
    x: Union[int, float] = 0
    y: Union[int, float] = 0
    zoom: Union[int, float] = 1


class FlowNodeV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    position: Position
    data: Dict[str, Any] = Field(default_factory=dict)


class FlowEdgeV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    sourceHandle: Optional[str] = None
    targetHandle: Optional[str] = None


class FlowDataV1(BaseModel):
    schemaVersion: int = CURRENT_SCHEMA_VERSION
    nodes: List[FlowNodeV1]
    edges: List[FlowEdgeV1]
    viewport: Viewport = Field(default_factory=Viewport)

    def node_dicts(self) -> List[Dict[str, Any]]:
        return [node.model_dump() for node in self.nodes]

    def edge_dicts(self) -> List[Dict[str, Any]]:
        return [edge.model_dump() for edge in self.edges]

    def to_flowise(self) -> Dict[str, Any]:
        """Plain Flowise ``{nodes, edges, viewport}`` shape without the version tag."""
        return {
            "nodes": self.node_dicts(),
            "edges": self.edge_dicts(),
            "viewport": self.viewport.model_dump(),
        }


FLOW_DATA_SCHEMAS: Dict[int, Type[BaseModel]] = {
    1: FlowDataV1,
}


def dump_flow_data(
    nodes: List[Dict[str, Any]],
    edges: List[Dict[str, Any]],
    viewport: Optional[Dict[str, Any]] = None,
) -> str:
    """Serialize a graph into the current versioned envelope."""
    envelope = {
        "schemaVersion": CURRENT_SCHEMA_VERSION,
        "nodes": nodes,
        "edges": edges,
        "viewport": viewport or Viewport().model_dump(),
    }
    # Validate on the way out too so a bad graph is never persisted
    load_flow_data_dict(envelope)
    return json.dumps(envelope)


def load_flow_data_dict(payload: Any) -> FlowDataV1:
    if not isinstance(payload, dict):
        raise FlowDataSchemaError("flow data must be a JSON object")

    version = payload.get("schemaVersion")
    if version is None:
        raise FlowDataSchemaError("missing schemaVersion")

    schema = FLOW_DATA_SCHEMAS.get(version) if isinstance(version, int) else None
    if schema is None:
        raise FlowDataSchemaError(f"unsupported schemaVersion {version!r}")

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise FlowDataSchemaError(f"invalid version {version} payload", detail=str(e)) from e


def load_flow_data(text: str) -> FlowDataV1:
    """Parse and validate a persisted ``flow_data`` blob."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FlowDataSchemaError("flow data is not valid JSON", detail=str(e)) from e
    return load_flow_data_dict(payload)
