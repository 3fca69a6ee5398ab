"""
Classification of imported Flowise workflows into Zanai agent suggestions.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.services.flowise.analyzer import Complexity, Pattern, StructuralAnalysis
from app.services.flowise.normalizer import DEFAULT_CATEGORY


class ComponentType(str, Enum):
    INPUT = "input"
    LLM = "llm"
    MEMORY = "memory"
    TOOL = "tool"
    OUTPUT = "output"
    REASONING = "reasoning"
    ANALYSIS = "analysis"


class AgentType(str, Enum):
    TEMPLATE = "template"
    CUSTOM = "custom"
    COMPOSED = "composed"


class WorkflowKind(str, Enum):
    CHAT = "chat"
    AGENT = "agent"
    MULTI = "multi"
    ASSISTANT = "assistant"


class TemplateType(str, Enum):
    CHATFLOW = "CHATFLOW"
    AGENTFLOW = "AGENTFLOW"
    MULTIAGENT = "MULTIAGENT"
    ASSISTANT = "ASSISTANT"


@dataclass(frozen=True)
class ZanaiComponent:
    type: ComponentType
    name: Optional[str]
    description: str
    config: Dict[str, Any] = field(default_factory=dict)
    connections: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "config": dict(self.config),
            "connections": list(self.connections),
        }


@dataclass(frozen=True)
class ZanaiMapping:
    suggested_agent_type: AgentType
    workflow_type: WorkflowKind
    suggested_components: List[ZanaiComponent]
    required_config: List[str]
    suggested_tools: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestedAgentType": self.suggested_agent_type.value,
            "workflowType": self.workflow_type.value,
            "suggestedComponents": [c.to_dict() for c in self.suggested_components],
            "requiredConfig": list(self.required_config),
            "suggestedTools": list(self.suggested_tools),
        }


def _category(node: Dict[str, Any]) -> str:
    return ((node.get("data") or {}).get("category") or "").lower()


def _kind(node: Dict[str, Any]) -> str:
    return (node.get("type") or "").lower()


NodePredicate = Callable[[Dict[str, Any]], bool]

# Evaluated top to bottom, first match wins
COMPONENT_RULES: Tuple[Tuple[NodePredicate, ComponentType], ...] = (
    (lambda n: "input" in _category(n) or "input" in _kind(n), ComponentType.INPUT),
    (lambda n: "chat" in _category(n) or "chat" in _kind(n) or "llm" in _kind(n), ComponentType.LLM),
    (lambda n: "memory" in _category(n), ComponentType.MEMORY),
    (lambda n: "tool" in _category(n), ComponentType.TOOL),
    (lambda n: "output" in _category(n), ComponentType.OUTPUT),
    (lambda n: "agent" in _category(n), ComponentType.REASONING),
    (lambda n: "analysis" in _category(n), ComponentType.ANALYSIS),
)
DEFAULT_COMPONENT_TYPE = ComponentType.INPUT


def classify_component(node: Dict[str, Any]) -> ComponentType:
    for predicate, component_type in COMPONENT_RULES:
        if predicate(node):
            return component_type
    return DEFAULT_COMPONENT_TYPE


def map_components(nodes: Sequence[Dict[str, Any]]) -> List[ZanaiComponent]:
    components = []
    for node in nodes:
        data = node.get("data") or {}
        inputs = data.get("inputs")
        components.append(ZanaiComponent(
            type=classify_component(node),
            name=data.get("label"),
            description=data.get("description") or f"Component {data.get('name')}",
            config=inputs if isinstance(inputs, dict) else {},
        ))
    return components


def extract_required_config(nodes: Sequence[Dict[str, Any]]) -> List[str]:
    """List ``node.param`` paths for mandatory, non-credential input parameters."""
    required: List[str] = []
    for node in nodes:
        data = node.get("data") or {}
        for param in data.get("inputParams") or []:
            if not isinstance(param, dict):
                continue
            if param.get("optional") or param.get("type") == "credential":
                continue
            path = f"{data.get('name')}.{param.get('name')}"
            if path not in required:
                required.append(path)
    return required


def suggest_tools(nodes: Sequence[Dict[str, Any]], patterns: Sequence[str]) -> List[str]:
    tools: List[str] = []
    for node in nodes:
        if "tool" in _category(node):
            name = (node.get("data") or {}).get("name")
            if name not in tools:
                tools.append(name)

    if Pattern.WITH_TOOLS.value in patterns and "general-tool-set" not in tools:
        tools.append("general-tool-set")

    return tools


def suggest_agent_type(analysis: StructuralAnalysis) -> Tuple[AgentType, WorkflowKind]:
    if analysis.complexity == Complexity.SIMPLE:
        return AgentType.TEMPLATE, WorkflowKind.CHAT
    if analysis.complexity == Complexity.MEDIUM or analysis.has_pattern(Pattern.WITH_TOOLS):
        return AgentType.CUSTOM, WorkflowKind.AGENT
    return AgentType.COMPOSED, WorkflowKind.MULTI


def generate_mapping(nodes: Sequence[Dict[str, Any]], analysis: StructuralAnalysis) -> ZanaiMapping:
    """Best-effort suggestion of the Zanai agent configuration for a workflow."""
    agent_type, workflow_type = suggest_agent_type(analysis)
    return ZanaiMapping(
        suggested_agent_type=agent_type,
        workflow_type=workflow_type,
        suggested_components=map_components(nodes),
        required_config=extract_required_config(nodes),
        suggested_tools=suggest_tools(nodes, analysis.patterns),
    )


def determine_template_type(
    nodes: Sequence[Dict[str, Any]],
    analysis: StructuralAnalysis,
) -> Tuple[TemplateType, Optional[str]]:
    """Pick the Flowise flow type and the most common node category."""
    if analysis.has_pattern(Pattern.AGENT_BASED) or analysis.complexity == Complexity.COMPLEX:
        template_type = TemplateType.AGENTFLOW
    elif analysis.has_pattern(Pattern.HIGHLY_CONNECTED) or any(
        "multi" in (kind or "").lower() for kind in analysis.node_types
    ):
        template_type = TemplateType.MULTIAGENT
    else:
        template_type = TemplateType.CHATFLOW

    # Counter.most_common keeps first-seen order among ties
    category_counts = Counter(
        (node.get("data") or {}).get("category") or DEFAULT_CATEGORY for node in nodes
    )
    most_common = category_counts.most_common(1)
    category = most_common[0][0] if most_common else None

    return template_type, category


def _agent_nodes(nodes: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [node for node in nodes if "agent" in _category(node) or "agent" in _kind(node)]


def extract_template_name(nodes: Sequence[Dict[str, Any]]) -> str:
    agent_nodes = _agent_nodes(nodes)
    if agent_nodes:
        return agent_nodes[0]["data"].get("label") or "Imported Agent"
    if nodes:
        return nodes[0]["data"].get("label") or "Imported Template"
    return "Imported Template"


def extract_template_description(nodes: Sequence[Dict[str, Any]]) -> str:
    agent_nodes = _agent_nodes(nodes)
    if agent_nodes:
        return agent_nodes[0]["data"].get("description") or ""
    return ""
