"""
Structured logging helpers: request correlation ids and timed collaborator calls.
"""

import time
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from loguru import logger

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Bind ``cid`` (or a fresh UUID) to the current context and return it."""
    cid = cid or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def log_request(request: Request, correlation_id: Optional[str] = None) -> None:
    method = request.method
    path = request.url.path
    logger.bind(
        correlation_id=correlation_id or get_correlation_id(),
        method=method,
        path=path,
        client_ip=request.client.host if request.client else None,
    ).info(f"{method} {path}")


def log_response(status_code: int, response_time_ms: float, correlation_id: Optional[str] = None) -> None:
    if status_code >= 500:
        level = "ERROR"
    elif status_code >= 400:
        level = "WARNING"
    else:
        level = "INFO"

    logger.bind(correlation_id=correlation_id or get_correlation_id()).log(
        level, f"Responded {status_code} in {response_time_ms:.2f}ms"
    )


def log_service_call(
    service_name: str,
    method_name: str,
    duration_ms: float,
    success: bool = True,
    **context: Any
) -> None:
    """
    Log one call to an external collaborator (Flowise, LLM provider).

    Args:
        service_name: Collaborator, e.g. ``"FlowiseClient"``
        method_name: Operation that was called
        duration_ms: Wall time of the call
        success: Whether the call returned normally
        **context: Extra fields bound to the record
    """
    extra: Dict[str, Any] = {
        "correlation_id": get_correlation_id(),
        "service": service_name,
        "method": method_name,
        "duration_ms": round(duration_ms, 2),
        "success": success,
    }
    extra.update(context)

    bound = logger.bind(**extra)
    if success:
        bound.info(f"{service_name}.{method_name} took {duration_ms:.0f}ms")
    else:
        bound.error(f"{service_name}.{method_name} failed after {duration_ms:.0f}ms")


@asynccontextmanager
async def timed_service_call(service_name: str, method_name: str, **context: Any) -> AsyncIterator[None]:
    """Time the enclosed block and log it as a collaborator call."""
    start_time = time.perf_counter()
    try:
        yield
    except Exception:
        log_service_call(
            service_name, method_name, (time.perf_counter() - start_time) * 1000, success=False, **context
        )
        raise
    log_service_call(service_name, method_name, (time.perf_counter() - start_time) * 1000, **context)
