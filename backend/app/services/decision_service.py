"""
LLM-assisted decisions among a fixed set of options.

The service talks to an OpenAI-compatible chat completions endpoint. It is
constructed once per process and handed to request handlers through a
FastAPI dependency; its lifecycle is tracked explicitly in ``state``.
"""

import re
import time
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from app.core.config import settings
from app.core.logging import timed_service_call
from app.schemas.decision import (
    DecisionAlternative,
    DecisionMetadata,
    DecisionRequest,
    DecisionResponse,
)
from app.utils.exceptions import LLMServiceError


SYSTEM_PROMPT = (
    "You are an AI assistant specialized in making decisions for intelligent agent systems. "
    "Analyze the given context and recommend the best option among the available alternatives, "
    "taking the stated criteria and the agent's characteristics into account."
)

DEFAULT_CONFIDENCE = 0.5

_ALTERNATIVE_LINE = re.compile(r"^-\s*(?P<option>.+?)\s*:\s*(?P<score>[0-9]*\.?[0-9]+)\s*(?:-\s*(?P<reasoning>.*))?$")


class ClientState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _parse_float(text: str, default: float) -> float:
    try:
        return float(text.strip())
    except ValueError:
        return default


class DecisionService:
    """Client for LLM decisions with an explicit initialization state."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.LLM_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.state = ClientState.UNINITIALIZED
        self.failure_reason: Optional[str] = None
        self._client = client

    async def initialize(self, force: bool = False) -> None:
        """
        Prepare the HTTP client.

        A failed initialization is sticky: later calls raise until
        ``initialize(force=True)`` succeeds.
        """
        if self.state == ClientState.READY and not force:
            return
        if self.state == ClientState.FAILED and not force:
            raise LLMServiceError("decision service is not available", detail=self.failure_reason)

        if not self.api_key:
            self.state = ClientState.FAILED
            self.failure_reason = "LLM_API_KEY is not configured"
            logger.error(f"Decision service initialization failed: {self.failure_reason}")
            raise LLMServiceError("decision service is not available", detail=self.failure_reason)

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS)

        self.state = ClientState.READY
        self.failure_reason = None
        logger.info(f"Decision service ready (model={self.model})")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.state = ClientState.UNINITIALIZED

    async def make_decision(self, request: DecisionRequest) -> DecisionResponse:
        """Ask the LLM to pick one of ``request.options``."""
        await self.initialize()

        start_time = time.perf_counter()
        prompt = self.build_decision_prompt(request)
        completion = await self._chat_completion(prompt)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response_text = self._completion_text(completion)
        decision = self.parse_decision_response(response_text, request.options)

        usage = completion.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        decision.metadata = DecisionMetadata(
            processing_time_ms=int(duration_ms),
            model_used=completion.get("model") if isinstance(completion.get("model"), str) else self.model,
            tokens_used=usage.get("total_tokens") or 0,
        )

        logger.info(f"Decision made: {decision.decision!r} (confidence={decision.confidence:.2f})")
        return decision

    async def _chat_completion(self, prompt: str) -> Dict[str, Any]:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.LLM_TEMPERATURE,
            "max_tokens": settings.LLM_MAX_TOKENS,
        }
        try:
            async with timed_service_call("DecisionService", "chat_completions", model=self.model):
                response = await self._client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Decision request failed: {e}")
            raise LLMServiceError("failed to process decision", detail=str(e)) from e

    @staticmethod
    def _completion_text(completion: Any) -> str:
        """Pull the first choice's message content out of a chat completion body."""
        if not isinstance(completion, dict):
            raise LLMServiceError("failed to process decision", detail="completion body is not an object")

        choices = completion.get("choices") or [{}]
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise LLMServiceError("failed to process decision", detail="malformed completion choices")

        message = choices[0].get("message") or {}
        if not isinstance(message, dict):
            raise LLMServiceError("failed to process decision", detail="malformed completion message")

        content = message.get("content") or ""
        return content if isinstance(content, str) else ""

    @staticmethod
    def build_decision_prompt(request: DecisionRequest) -> str:
        lines: List[str] = ["# Decision Context", request.context, "", "# Available Options"]
        lines.extend(f"{i}. {option}" for i, option in enumerate(request.options, start=1))

        if request.criteria:
            lines.extend(["", "# Evaluation Criteria"])
            lines.extend(f"{i}. {criterion}" for i, criterion in enumerate(request.criteria, start=1))

        if request.agent_info:
            agent = request.agent_info
            lines.extend([
                "",
                "# Agent Information",
                f"- Name: {agent.name}",
                f"- Type: {agent.type}",
                f"- Capabilities: {', '.join(agent.capabilities)}",
            ])
            if agent.description:
                lines.append(f"- Description: {agent.description}")

        lines.extend([
            "",
            "# Instructions",
            "Analyze the context and the available options. Consider the evaluation criteria "
            "and the agent's characteristics. Select the BEST option and justify your decision.",
            "",
            "# Response Format",
            "DECISION: [name of the chosen option]",
            "CONFIDENCE: [value from 0 to 1]",
            "REASONING: [detailed explanation of the decision]",
            "ALTERNATIVES:",
            "- [option]: [score 0-1] - [short justification]",
        ])
        return "\n".join(lines)

    @staticmethod
    def parse_decision_response(response_text: str, options: List[str]) -> DecisionResponse:
        """
        Extract the structured decision from the model's answer.

        Unknown decisions fall back to the first option; alternatives that do
        not name a known option are dropped.
        """
        decision = ""
        reasoning = ""
        confidence = DEFAULT_CONFIDENCE
        alternatives: List[DecisionAlternative] = []

        for line in response_text.splitlines():
            stripped = line.strip()
            upper = stripped.upper()
            if upper.startswith("DECISION:"):
                decision = stripped[len("DECISION:"):].strip()
            elif upper.startswith("REASONING:"):
                reasoning = stripped[len("REASONING:"):].strip()
            elif upper.startswith("CONFIDENCE:"):
                confidence = _parse_float(stripped[len("CONFIDENCE:"):], DEFAULT_CONFIDENCE)
            elif stripped.startswith("-"):
                match = _ALTERNATIVE_LINE.match(stripped)
                if match and match.group("option") in options:
                    alternatives.append(DecisionAlternative(
                        option=match.group("option"),
                        score=_clamp(_parse_float(match.group("score"), 0.0)),
                        reasoning=(match.group("reasoning") or "").strip(),
                    ))

        if decision not in options:
            logger.debug(f"Decision {decision!r} is not a known option, using {options[0]!r}")
            decision = options[0]

        return DecisionResponse(
            decision=decision,
            reasoning=reasoning,
            confidence=_clamp(confidence),
            alternatives=alternatives,
        )


_decision_service: Optional[DecisionService] = None


def get_decision_service() -> DecisionService:
    """FastAPI dependency returning the process-wide decision client."""
    global _decision_service
    if _decision_service is None:
        _decision_service = DecisionService()
    return _decision_service
