"""
Tests for mapping imported Flowise graphs onto Zanai agent suggestions.
"""

from app.services.flowise.analyzer import analyze
from app.services.flowise.mapping import (
    AgentType,
    ComponentType,
    TemplateType,
    WorkflowKind,
    classify_component,
    determine_template_type,
    extract_required_config,
    extract_template_description,
    extract_template_name,
    generate_mapping,
    suggest_tools,
)
from app.services.flowise.normalizer import parse_flow


def _node(node_id, category, node_type="customNode", label=None, description=""):
    return {
        "id": node_id,
        "type": node_type,
        "position": {"x": 0, "y": 0},
        "data": {
            "id": node_id,
            "name": node_id,
            "label": label,
            "category": category,
            "description": description,
        },
    }


def test_classify_component_first_matching_rule_wins():
    # "input" is checked before "chat"
    assert classify_component(_node("a", "Chat Input")) == ComponentType.INPUT
    assert classify_component(_node("a", "Chat Models")) == ComponentType.LLM
    assert classify_component(_node("a", "Memory")) == ComponentType.MEMORY
    assert classify_component(_node("a", "Tools")) == ComponentType.TOOL
    assert classify_component(_node("a", "Output Parsers")) == ComponentType.OUTPUT
    assert classify_component(_node("a", "Agents")) == ComponentType.REASONING
    assert classify_component(_node("a", "Analysis")) == ComponentType.ANALYSIS


def test_classify_component_uses_node_kind():
    assert classify_component(_node("a", "Misc", node_type="llmNode")) == ComponentType.LLM
    assert classify_component(_node("a", "Misc", node_type="chatInput")) == ComponentType.INPUT


def test_classify_component_defaults_to_input():
    assert classify_component(_node("a", "Chains")) == ComponentType.INPUT


def test_required_config_skips_optional_and_credentials(chat_template):
    nodes, _, _ = parse_flow(chat_template)

    assert extract_required_config(nodes) == ["chatOpenAI.modelName", "bufferMemory.memoryKey"]


def test_suggest_tools_adds_general_tool_set():
    nodes = [_node("serpAPI", "Tools"), _node("calculator", "Tools"), _node("serpAPI", "Tools")]

    tools = suggest_tools(nodes, ["with-tools"])

    assert tools == ["serpAPI", "calculator", "general-tool-set"]


def test_suggest_tools_without_tool_pattern():
    assert suggest_tools([_node("a", "Chains")], []) == []


def test_generate_mapping_for_chat_template(chat_template):
    nodes, edges, _ = parse_flow(chat_template)

    mapping = generate_mapping(nodes, analyze(nodes, edges))

    assert mapping.suggested_agent_type == AgentType.COMPOSED
    assert mapping.workflow_type == WorkflowKind.MULTI
    assert [c.type for c in mapping.suggested_components] == [
        ComponentType.LLM,
        ComponentType.MEMORY,
        ComponentType.INPUT,
    ]
    assert mapping.suggested_components[0].config == {"modelName": "gpt-4o-mini", "temperature": 0.9}
    assert mapping.suggested_components[1].description == "Component bufferMemory"
    assert mapping.suggested_tools == []


def test_generate_mapping_simple_graph_is_template_chat():
    nodes = [_node("a", "Chat Models"), _node("b", "Chains")]
    edges = [{"source": "a", "target": "b"}]

    mapping = generate_mapping(nodes, analyze(nodes, edges))

    assert mapping.suggested_agent_type == AgentType.TEMPLATE
    assert mapping.workflow_type == WorkflowKind.CHAT


def test_generate_mapping_medium_graph_is_custom_agent():
    nodes = [_node("a", "Tools"), _node("b", "Chat Models"), _node("c", "Chains")]
    edges = [{"source": "a", "target": "c"}, {"source": "b", "target": "c"}]

    mapping = generate_mapping(nodes, analyze(nodes, edges))

    assert mapping.suggested_agent_type == AgentType.CUSTOM
    assert mapping.workflow_type == WorkflowKind.AGENT
    assert mapping.suggested_tools == ["a", "general-tool-set"]


def test_mapping_to_dict(chat_template):
    nodes, edges, _ = parse_flow(chat_template)

    result = generate_mapping(nodes, analyze(nodes, edges)).to_dict()

    assert result["suggestedAgentType"] == "composed"
    assert result["workflowType"] == "multi"
    assert result["suggestedComponents"][0]["type"] == "llm"
    assert result["suggestedComponents"][0]["name"] == "ChatOpenAI"


def test_determine_template_type_and_category(chat_template):
    nodes, edges, _ = parse_flow(chat_template)

    template_type, category = determine_template_type(nodes, analyze(nodes, edges))

    assert template_type == TemplateType.AGENTFLOW
    # Ties keep the first category seen
    assert category == "Chat Models"


def test_determine_template_type_highly_connected_is_multiagent():
    nodes = [_node("a", "Tools"), _node("b", "Tools"), _node("c", "Chains")]
    edges = [
        {"source": "a", "target": "c"},
        {"source": "b", "target": "c"},
        {"source": "c", "target": "a"},
        {"source": "c", "target": "b"},
    ]

    template_type, category = determine_template_type(nodes, analyze(nodes, edges))

    assert template_type == TemplateType.MULTIAGENT
    assert category == "Tools"


def test_determine_template_type_multi_node_kind():
    nodes = [_node("router", "Chains", node_type="multiPromptChain")]

    template_type, _ = determine_template_type(nodes, analyze(nodes, []))

    assert template_type == TemplateType.MULTIAGENT


def test_determine_template_type_simple_chat():
    nodes = [_node("a", "Chat Models"), _node("b", "Chains")]

    template_type, _ = determine_template_type(nodes, analyze(nodes, []))

    assert template_type == TemplateType.CHATFLOW


def test_determine_template_type_empty_graph():
    assert determine_template_type([], analyze([], [])) == (TemplateType.CHATFLOW, None)


def test_template_name_prefers_agent_nodes():
    nodes = [
        _node("llm", "Chat Models", label="ChatOpenAI"),
        _node("agent", "Agents", label="Tool Agent", description="Uses tools"),
    ]

    assert extract_template_name(nodes) == "Tool Agent"
    assert extract_template_description(nodes) == "Uses tools"


def test_template_name_fallbacks():
    assert extract_template_name([_node("llm", "Chat Models", label="ChatOpenAI")]) == "ChatOpenAI"
    assert extract_template_name([_node("llm", "Chat Models")]) == "Imported Template"
    assert extract_template_name([_node("a", "Agents")]) == "Imported Agent"
    assert extract_template_name([]) == "Imported Template"
    assert extract_template_description([_node("llm", "Chat Models")]) == ""
