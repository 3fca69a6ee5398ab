import json

import httpx
import pytest

from app.schemas.decision import AgentContext, DecisionRequest
from app.services.decision_service import ClientState, DecisionService
from app.utils.exceptions import LLMServiceError


OPTIONS = ["Retry the call", "Escalate to a human", "Drop the request"]

MODEL_ANSWER = """DECISION: Escalate to a human
CONFIDENCE: 0.82
REASONING: The failure is not transient.
ALTERNATIVES:
- Retry the call: 0.4 - Might work if the outage is short
- Drop the request: 0.1
- Something else: 0.9 - not an option
"""


def _request(**overrides):
    payload = {
        "context": "The payment provider returned a 500 three times",
        "options": OPTIONS,
        "criteria": ["customer impact"],
    }
    payload.update(overrides)
    return DecisionRequest(**payload)


def _completion(content, model="gpt-4", total_tokens=42):
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": total_tokens},
    }


def test_parse_decision_response():
    decision = DecisionService.parse_decision_response(MODEL_ANSWER, OPTIONS)

    assert decision.decision == "Escalate to a human"
    assert decision.confidence == pytest.approx(0.82)
    assert decision.reasoning == "The failure is not transient."
    assert [(a.option, a.score) for a in decision.alternatives] == [
        ("Retry the call", 0.4),
        ("Drop the request", 0.1),
    ]
    assert decision.alternatives[0].reasoning == "Might work if the outage is short"
    assert decision.alternatives[1].reasoning == ""


def test_parse_decision_response_option_with_colon():
    options = ["Plan A: retry", "Plan B"]

    decision = DecisionService.parse_decision_response(
        "DECISION: Plan B\nALTERNATIVES:\n- Plan A: retry: 0.3 - fallback", options
    )

    assert decision.alternatives[0].option == "Plan A: retry"
    assert decision.alternatives[0].score == pytest.approx(0.3)


def test_parse_decision_response_falls_back_to_first_option():
    decision = DecisionService.parse_decision_response("I am not sure.", OPTIONS)

    assert decision.decision == OPTIONS[0]
    assert decision.confidence == 0.5
    assert decision.alternatives == []


def test_parse_decision_response_clamps_confidence():
    decision = DecisionService.parse_decision_response(
        "DECISION: Drop the request\nCONFIDENCE: 7", OPTIONS
    )

    assert decision.confidence == 1.0


def test_parse_decision_response_bad_confidence_uses_default():
    decision = DecisionService.parse_decision_response(
        "DECISION: Drop the request\nCONFIDENCE: high", OPTIONS
    )

    assert decision.confidence == 0.5


def test_build_decision_prompt_lists_options_and_agent():
    request = _request(agent_info=AgentContext(
        name="Ops", type="custom", capabilities=["paging", "retries"], description="On-call helper",
    ))

    prompt = DecisionService.build_decision_prompt(request)

    assert "1. Retry the call" in prompt
    assert "3. Drop the request" in prompt
    assert "1. customer impact" in prompt
    assert "- Capabilities: paging, retries" in prompt
    assert "- Description: On-call helper" in prompt
    assert "DECISION:" in prompt


@pytest.mark.asyncio
async def test_make_decision_calls_chat_completions():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion(MODEL_ANSWER), request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        service = DecisionService(base_url="http://llm.local/v1", api_key="key", model="gpt-4", client=client)
        decision = await service.make_decision(_request())

    assert service.state == ClientState.READY
    assert seen["url"] == "http://llm.local/v1/chat/completions"
    assert seen["auth"] == "Bearer key"
    assert seen["body"]["model"] == "gpt-4"
    assert seen["body"]["messages"][0]["role"] == "system"
    assert decision.decision == "Escalate to a human"
    assert decision.metadata.model_used == "gpt-4"
    assert decision.metadata.tokens_used == 42
    assert decision.metadata.processing_time_ms >= 0


@pytest.mark.asyncio
async def test_missing_api_key_fails_and_stays_failed():
    service = DecisionService(base_url="http://llm.local/v1", api_key="")

    with pytest.raises(LLMServiceError):
        await service.make_decision(_request())
    assert service.state == ClientState.FAILED
    assert service.failure_reason == "LLM_API_KEY is not configured"

    service.api_key = "key"
    with pytest.raises(LLMServiceError):
        await service.initialize()
    assert service.state == ClientState.FAILED


@pytest.mark.asyncio
async def test_forced_initialize_recovers_from_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("DECISION: Drop the request"), request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        service = DecisionService(base_url="http://llm.local/v1", api_key="", client=client)
        with pytest.raises(LLMServiceError):
            await service.initialize()

        service.api_key = "key"
        await service.initialize(force=True)
        decision = await service.make_decision(_request())

    assert service.state == ClientState.READY
    assert decision.decision == "Drop the request"


@pytest.mark.asyncio
async def test_upstream_error_raises_llm_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "overloaded"}, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        service = DecisionService(base_url="http://llm.local/v1", api_key="key", client=client)
        with pytest.raises(LLMServiceError) as exc_info:
            await service.make_decision(_request())

    assert str(exc_info.value).startswith("LLM service error: ")
    # A failed request does not poison the client
    assert service.state == ClientState.READY


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        ["not", "an", "object"],
        "plain text",
        {"choices": ["DECISION: Drop the request"]},
        {"choices": {"message": "DECISION: Drop the request"}},
        {"choices": [{"message": "DECISION: Drop the request"}]},
    ],
)
async def test_malformed_completion_raises_llm_service_error(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        service = DecisionService(base_url="http://llm.local/v1", api_key="key", client=client)
        with pytest.raises(LLMServiceError, match="failed to process decision"):
            await service.make_decision(_request())

    assert service.state == ClientState.READY


@pytest.mark.asyncio
async def test_completion_with_odd_usage_and_model_falls_back():
    body = {
        "model": 7,
        "choices": [{"message": {"content": "DECISION: Drop the request"}}],
        "usage": "n/a",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        service = DecisionService(base_url="http://llm.local/v1", api_key="key", model="gpt-4", client=client)
        decision = await service.make_decision(_request())

    assert decision.decision == "Drop the request"
    assert decision.metadata.model_used == "gpt-4"
    assert decision.metadata.tokens_used == 0
