"""
Conversion of generated Zanai workflows into Flowise node/edge JSON.

Business logic elsewhere decides which nodes a workflow has; this module
only lays them out, attaches the fixed per-kind ports and default
settings, and computes the metadata stored alongside the blob.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional

from loguru import logger

from app.schemas.flowise_workflow import GeneratedEdge, GeneratedNode, GeneratedWorkflow
from app.services.agent_lookup import AgentInfo, AgentLookup
from app.services.flowise.analyzer import calculate_complexity_score
from app.services.flowise.normalizer import DEFAULT_VIEWPORT


START_Y = 50
ROW_HEIGHT = 100
X_JITTER_STEP = 50
DEFAULT_X = 200

FLOWISE_TYPE_MAPPING = {
    "StartNode": "startNode",
    "EndNode": "endNode",
    "LLMNode": "llmNode",
    "ToolNode": "toolNode",
    "CustomNode": "customNode",
    "ConditionNode": "conditionNode",
    "ParallelNode": "parallelNode",
}
DEFAULT_FLOWISE_TYPE = "customNode"

BASE_X_POSITIONS = {
    "StartNode": 50,
    "EndNode": 450,
    "LLMNode": 150,
    "ToolNode": 250,
    "CustomNode": 200,
    "ConditionNode": 300,
    "ParallelNode": 350,
}

NODE_CATEGORIES = {
    "StartNode": "Input",
    "EndNode": "Output",
    "LLMNode": "LLM",
    "ToolNode": "Tools",
    "CustomNode": "Custom",
    "ConditionNode": "Logic",
    "ParallelNode": "Logic",
}
DEFAULT_NODE_CATEGORY = "Custom"


def _port(name: str, type_: str, label: str, required: bool = False) -> Dict[str, Any]:
    port: Dict[str, Any] = {"name": name, "type": type_, "label": label}
    if required:
        port["required"] = True
    return port


NODE_INPUTS = {
    "StartNode": [_port("input", "string", "Input", True)],
    "LLMNode": [
        _port("prompt", "string", "Prompt", True),
        _port("systemMessage", "string", "System Message"),
        _port("temperature", "number", "Temperature"),
    ],
    "ToolNode": [
        _port("input", "string", "Input", True),
        _port("toolName", "string", "Tool Name", True),
    ],
    "CustomNode": [
        _port("input", "string", "Input", True),
        _port("agentId", "string", "Agent ID", True),
    ],
    "ConditionNode": [
        _port("input", "string", "Input", True),
        _port("condition", "string", "Condition", True),
    ],
    "ParallelNode": [
        _port("input", "string", "Input", True),
        _port("branches", "number", "Number of Branches", True),
    ],
    "EndNode": [_port("input", "string", "Input", True)],
}

NODE_OUTPUTS = {
    "StartNode": [_port("output", "string", "Output")],
    "LLMNode": [
        _port("response", "string", "Response"),
        _port("tokens", "number", "Tokens"),
    ],
    "ToolNode": [
        _port("result", "string", "Result"),
        _port("success", "boolean", "Success"),
    ],
    "CustomNode": [
        _port("output", "string", "Output"),
        _port("executionTime", "number", "Execution Time"),
    ],
    "ConditionNode": [
        _port("true", "string", "True Path"),
        _port("false", "string", "False Path"),
    ],
    "ParallelNode": [_port("results", "array", "Results")],
    "EndNode": [_port("final", "string", "Final Output")],
}

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_COUNT = 3

_LEADING_DIGITS = re.compile(r"\d+")


def node_x_position(node_type: str, node_id: str) -> int:
    """Base column per node kind plus a small jitter from the id's numeric suffix."""
    parts = str(node_id).split("_")
    suffix = parts[1] if len(parts) > 1 else ""
    match = _LEADING_DIGITS.match(suffix)
    variation = (int(match.group()) % 3) * X_JITTER_STEP if match else 0
    return BASE_X_POSITIONS.get(node_type, DEFAULT_X) + variation


def source_handle(node_id: str) -> str:
    if "start" in node_id:
        return "output"
    if "end" in node_id:
        return "input"
    return "output"


def target_handle(node_id: str) -> str:
    if "start" in node_id:
        return "output"
    if "end" in node_id:
        return "input"
    return "input"


def node_settings(node: GeneratedNode, agent: Optional[AgentInfo] = None) -> Dict[str, Any]:
    config = node.config
    settings: Dict[str, Any] = {
        "timeout": config.get("timeout") or DEFAULT_TIMEOUT_MS,
        "retryCount": config.get("retryCount") or DEFAULT_RETRY_COUNT,
        "description": node.description,
    }

    if node.type == "LLMNode":
        temperature = config.get("temperature")
        settings.update({
            "model": config.get("model") or "gpt-3.5-turbo",
            "temperature": 0.7 if temperature is None else temperature,
            "maxTokens": config.get("maxTokens") or 1000,
        })
    elif node.type == "CustomNode":
        settings.update({
            "agentId": config.get("agentId"),
            "agentName": (agent.name if agent else None) or node.name,
            "agentConfig": (agent.config if agent else None) or "{}",
        })
    elif node.type == "ToolNode":
        settings.update({
            "toolName": config.get("toolName") or "default_tool",
            "toolParameters": config.get("toolParameters") or "{}",
        })
    elif node.type == "ConditionNode":
        settings.update({
            "condition": config.get("condition") or "true",
            "expression": config.get("expression") or 'input === "true"',
        })
    elif node.type == "ParallelNode":
        settings.update({
            "branches": config.get("branches") or 2,
            "waitForAll": config.get("waitForAll", True),
        })

    return settings


def convert_edge(edge: GeneratedEdge, index: int) -> Dict[str, Any]:
    source = source_handle(edge.source)
    target = target_handle(edge.target)
    return {
        "id": f"edge_{index}",
        "source": edge.source,
        "target": edge.target,
        "sourceHandle": source,
        "targetHandle": target,
        "data": {
            "sourceHandle": source,
            "targetHandle": target,
        },
    }


def calculate_flow_complexity_score(flow: Dict[str, Any]) -> int:
    return calculate_complexity_score(
        [node.get("type") or "" for node in flow["nodes"]],
        len(flow["edges"]),
    )


def calculate_max_depth(flow: Dict[str, Any]) -> int:
    """Depth from the vertical spread of the layout, not from the graph."""
    y_positions = [node["position"]["y"] for node in flow["nodes"]]
    if not y_positions:
        return 0
    return math.ceil((max(y_positions) - min(y_positions)) / ROW_HEIGHT) + 1


class FlowiseConverter:
    """Emit Flowise JSON for generated workflows."""

    def __init__(self, agent_lookup: Optional[AgentLookup] = None):
        self.agent_lookup = agent_lookup

    async def convert(self, generated: GeneratedWorkflow) -> Dict[str, Any]:
        """
        Convert a generated workflow to the Flowise ``{nodes, edges, viewport}`` shape.

        Nodes are stacked top to bottom in input order. The output only
        depends on the input and on what the agent lookup returns.
        """
        nodes: List[Dict[str, Any]] = []
        y_offset = START_Y
        for node in generated.nodes:
            nodes.append(await self.convert_node(node, y_offset))
            y_offset += ROW_HEIGHT

        edges = [convert_edge(edge, i) for i, edge in enumerate(generated.edges)]

        logger.debug(
            f"Converted workflow '{generated.name}' to Flowise format: "
            f"{len(nodes)} nodes, {len(edges)} edges"
        )

        return {
            "nodes": nodes,
            "edges": edges,
            "viewport": dict(DEFAULT_VIEWPORT),
        }

    async def convert_node(self, node: GeneratedNode, y_offset: int) -> Dict[str, Any]:
        flowise_type = FLOWISE_TYPE_MAPPING.get(node.type, DEFAULT_FLOWISE_TYPE)

        agent = None
        agent_id = node.config.get("agentId")
        if node.type == "CustomNode" and agent_id and self.agent_lookup is not None:
            agent = await self.agent_lookup.get_agent(agent_id)
            if agent is None:
                logger.warning(f"Agent {agent_id} referenced by node {node.id} not found")

        return {
            "id": node.id,
            "type": flowise_type,
            "position": {
                "x": node_x_position(node.type, node.id),
                "y": y_offset,
            },
            "data": {
                "id": node.id,
                "label": node.name,
                "name": node.name,
                "type": flowise_type,
                "category": NODE_CATEGORIES.get(node.type, DEFAULT_NODE_CATEGORY),
                "inputs": [dict(port) for port in NODE_INPUTS.get(node.type, [])],
                "outputs": [dict(port) for port in NODE_OUTPUTS.get(node.type, [])],
                "settings": node_settings(node, agent),
                "credentials": node.config.get("credentials") or "",
            },
        }

    @staticmethod
    def build_record(
        flow: Dict[str, Any],
        generated: GeneratedWorkflow,
        workspace_id: str,
    ) -> Dict[str, Any]:
        """Scalar metadata stored next to the flow-data blob."""
        return {
            "workspace_id": workspace_id,
            "name": generated.name,
            "description": generated.description,
            "type": "AGENTFLOW",
            "category": "generated",
            "deployed": False,
            "is_public": False,
            "complexity_score": calculate_flow_complexity_score(flow),
            "node_count": len(flow["nodes"]),
            "edge_count": len(flow["edges"]),
            "max_depth": calculate_max_depth(flow),
            "capabilities": {
                "aiGenerated": True,
                "workflowType": generated.complexity,
                "estimatedTime": generated.estimated_time,
                "agentCount": len(generated.agents),
            },
        }
