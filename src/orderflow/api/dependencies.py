from __future__ import annotations

from fastapi import Header, Request

from orderflow.api.container import Container
from orderflow.api.middleware.request_id import get_request_id
from orderflow.application.errors import UnauthorizedError
from orderflow.application.use_cases.context import TraceContext
from orderflow.domain.staff.principal import InvalidPrincipalError, Principal, principal_from_claims
from orderflow.infrastructure.observability.logging_config import current_trace_id

PRINCIPAL_ROLE_HEADER = "X-Principal-Role"
PRINCIPAL_ID_HEADER = "X-Principal-Id"


def get_container(request: Request) -> Container:
    return request.app.state.container


def resolve_principal(role: str | None, subject: str | None) -> Principal:
    try:
        return principal_from_claims(role, subject)
    except InvalidPrincipalError as exc:
        raise UnauthorizedError(str(exc)) from exc


def current_principal(
    role: str | None = Header(default=None, alias=PRINCIPAL_ROLE_HEADER),
    subject: str | None = Header(default=None, alias=PRINCIPAL_ID_HEADER),
) -> Principal:
    """Identity asserted by the trusted gateway. No role header means a table customer."""
    return resolve_principal(role, subject)


def trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())
