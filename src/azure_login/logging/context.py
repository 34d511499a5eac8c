"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_flow: ContextVar[str] = ContextVar("flow", default="")
_tenant_id: ContextVar[str] = ContextVar("tenant_id", default="")
_client_id: ContextVar[str] = ContextVar("client_id", default="")


def set_log_context(
    flow: Optional[str] = None,
    tenant_id: Optional[str] = None,
    client_id: Optional[str] = None,
) -> None:
    if flow is not None:
        _flow.set(flow)
    if tenant_id is not None:
        _tenant_id.set(tenant_id)
    if client_id is not None:
        _client_id.set(client_id)


def get_log_context() -> Dict[str, str]:
    return {
        "flow": _flow.get(),
        "tenant_id": _tenant_id.get(),
        "client_id": _client_id.get(),
    }


def clear_log_context() -> None:
    _flow.set("")
    _tenant_id.set("")
    _client_id.set("")
